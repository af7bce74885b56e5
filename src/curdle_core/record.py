"""Curdle Core - Fixed width record codec and score parser."""
from __future__ import annotations

import enum
import os
import re

from curdle_core.protocol import (
    FIELD_SIZE,
    NAME_OFF,
    SCORE_OFF,
    NEWLINE_OFF,
    REC_SIZE,
    NAME_MAX_LEN,
    NAME_PAD,
    SCORE_PAD,
    REC_TERMINATOR,
    INT_MAX,
    SCORE_LOW_BOUND,
)

_NUMERIC_PREFIX = re.compile(r"[+-]?[0-9]+")


class ScoreStatus(enum.Enum):
    VALID = "VALID"
    OVERFLOW = "OVERFLOW"
    UNDERFLOW = "UNDERFLOW"
    INVALID = "INVALID"


class ShortWriteError(OSError):
    """A record write stored fewer bytes than the record holds."""


def parse_score(text: str) -> tuple[ScoreStatus, int | None]:
    """Parse a base 10 score, classifying why it is unusable.

    Range checks run on the numeric prefix before trailing characters are
    looked at, so ``"99999999999x"`` is OVERFLOW rather than INVALID.
    """
    if not text or text[0].isspace():
        return ScoreStatus.INVALID, None

    m = _NUMERIC_PREFIX.match(text)
    if m is None:
        return ScoreStatus.INVALID, None

    value = int(m.group())
    if value > INT_MAX:
        return ScoreStatus.OVERFLOW, None
    if value < SCORE_LOW_BOUND:
        return ScoreStatus.UNDERFLOW, None
    if m.end() != len(text):
        return ScoreStatus.INVALID, None

    return ScoreStatus.VALID, value


def in_score_range(value: int) -> bool:
    return SCORE_LOW_BOUND <= value <= INT_MAX


def encode_record(name: str, score: int) -> bytes:
    """Render one 21 byte record: NUL padded name, space padded score, newline."""
    raw_name = name.encode("ascii")
    if len(raw_name) > NAME_MAX_LEN:
        raise ValueError(f"Name {name!r} exceeds {NAME_MAX_LEN} characters")
    if not in_score_range(score):
        raise ValueError(f"Score {score} outside [{SCORE_LOW_BOUND}, {INT_MAX}]")

    raw_score = str(int(score)).encode("ascii")
    return raw_name.ljust(FIELD_SIZE, NAME_PAD) + raw_score.ljust(FIELD_SIZE, SCORE_PAD) + REC_TERMINATOR


def decode_name(field: bytes) -> str:
    if len(field) != FIELD_SIZE or field[FIELD_SIZE - 1:] != NAME_PAD:
        raise ValueError("Name field is not NUL terminated")
    return field[:NAME_MAX_LEN].split(NAME_PAD, 1)[0].decode("ascii")


def decode_score(field: bytes) -> tuple[ScoreStatus, int | None]:
    # Older files pad the score with NUL instead of spaces; both are padding.
    text = field.split(NAME_PAD, 1)[0].rstrip(SCORE_PAD)
    return parse_score(text.decode("latin-1"))


def decode_record(line: bytes) -> tuple[str, int]:
    """Decode a full record line into ``(name, score)``.

    Raises ValueError on any structural problem.
    """
    if len(line) != REC_SIZE:
        raise ValueError(f"Record length {len(line)} != {REC_SIZE}")
    if line[NEWLINE_OFF:] != REC_TERMINATOR:
        raise ValueError("Record is missing its newline terminator")

    name = decode_name(line[NAME_OFF:NAME_OFF + FIELD_SIZE])
    status, score = decode_score(line[SCORE_OFF:SCORE_OFF + FIELD_SIZE])
    if status is not ScoreStatus.VALID:
        raise ValueError(f"Score field for {name!r} is {status.value}")
    return name, score


def write_record(fd: int, buf: bytes, offset: int) -> None:
    """Store ``buf`` at ``offset`` with a single positioned write.

    A short write is reported, never retried.
    """
    if len(buf) != REC_SIZE:
        raise ValueError(f"Refusing to write {len(buf)} bytes as a record")
    written = os.pwrite(fd, buf, offset)
    if written != REC_SIZE:
        raise ShortWriteError(f"Wrote {written} of {REC_SIZE} record bytes at offset {offset}")
