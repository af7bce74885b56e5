from __future__ import annotations

from typing import BinaryIO
from warnings import warn

from curdle_core.protocol import (
    FIELD_SIZE,
    NAME_OFF,
    SCORE_OFF,
    NEWLINE_OFF,
    REC_SIZE,
    REC_TERMINATOR,
)
from curdle_core.record import ScoreStatus, decode_name, decode_score
from curdle_scores.const import ErrorCode


class ScoreFileError(Exception):
    code = ""


class CorruptRecordError(ScoreFileError):
    code = ErrorCode.CORRUPT_RECORD


class SeekError(ScoreFileError):
    code = ErrorCode.SEEK


class ReadError(ScoreFileError):
    code = ErrorCode.READ


class RecordScanner:
    """Walks a scores file line by line.

    - Only lines exactly one record long are candidates; anything else is noise.
    - The first record whose name matches wins, and its score must decode.
      A matched name with a bad score aborts the scan instead of being skipped.
    """

    def __init__(self, fp: BinaryIO):
        self.fp = fp
        self.scan_stats = {
            "lines": 0,
            "records": 0,
            "skipped_lines": 0,
            "bad_names": 0,
            "bad_scores": 0,
        }

    def _lines(self):
        """Yield ``(start_offset, line)`` from the start of the file."""
        try:
            self.fp.seek(0)
        except OSError as e:
            raise SeekError(f"Cannot rewind scores file: {e}") from e

        pos = 0
        try:
            for line in self.fp:
                start_off = pos
                pos += len(line)
                self.scan_stats["lines"] += 1
                if len(line) != REC_SIZE:
                    self.scan_stats["skipped_lines"] += 1
                    warn(f"Skipping {len(line)} byte line at offset {start_off}")
                    continue
                self.scan_stats["records"] += 1
                yield start_off, line
        except OSError as e:
            raise ReadError(f"Cannot read scores file after offset {pos}: {e}") from e

    def find(self, name: str) -> tuple[int, int] | None:
        """Return ``(offset_after_record, score)`` for ``name``, or None."""
        for start_off, line in self._lines():
            try:
                rec_name = decode_name(line[NAME_OFF:NAME_OFF + FIELD_SIZE])
            except ValueError:
                self.scan_stats["bad_names"] += 1
                continue
            if rec_name != name:
                continue

            if line[NEWLINE_OFF:] != REC_TERMINATOR:
                raise CorruptRecordError(f"Record for {name!r} at offset {start_off} is not newline terminated")
            status, score = decode_score(line[SCORE_OFF:SCORE_OFF + FIELD_SIZE])
            if status is not ScoreStatus.VALID:
                self.scan_stats["bad_scores"] += 1
                raise CorruptRecordError(f"Record for {name!r} at offset {start_off} has {status.value} score")

            return start_off + REC_SIZE, score

        return None

    def audit(self) -> dict:
        """Decode every candidate record and return the scan stats."""
        for _, line in self._lines():
            try:
                decode_name(line[NAME_OFF:NAME_OFF + FIELD_SIZE])
            except ValueError:
                self.scan_stats["bad_names"] += 1
                continue
            status, _ = decode_score(line[SCORE_OFF:SCORE_OFF + FIELD_SIZE])
            if status is not ScoreStatus.VALID or line[NEWLINE_OFF:] != REC_TERMINATOR:
                self.scan_stats["bad_scores"] += 1
        return self.get_scan_stats()

    def get_scan_stats(self) -> dict:
        return dict(self.scan_stats)


def find_record(fp: BinaryIO, name: str) -> tuple[int, int] | None:
    return RecordScanner(fp).find(name)
