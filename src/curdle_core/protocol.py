"""Curdle scores file layout constants.

Single source of truth for the on-disk record layout.
Keep this file stable. Every reader and writer of the scores file depends on it.
"""

from pathlib import Path

# Record: [Name(10) | Score(10) | Newline(1)] = 21 bytes
FIELD_SIZE = 10
NAME_OFF = 0
SCORE_OFF = FIELD_SIZE
NEWLINE_OFF = FIELD_SIZE * 2
REC_SIZE = FIELD_SIZE * 2 + 1

# The name field keeps its last byte for the NUL terminator.
NAME_MAX_LEN = FIELD_SIZE - 1
NAME_PAD = b"\x00"
SCORE_PAD = b" "
REC_TERMINATOR = b"\n"

# Score bounds. The low bound is the widest negative number that still
# fits the 10 byte field including its minus sign.
INT_MAX = 2_147_483_647
SCORE_LOW_BOUND = -999_999_999

DEFAULT_SCORES_PATH = Path("/var/lib/curdle/scores")
