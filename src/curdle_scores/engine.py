"""Curdle Scores - Find-or-append score updates."""
from __future__ import annotations

import fcntl
import os
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO
from warnings import warn

from curdle_core.names import normalize_name, validate_name
from curdle_core.protocol import DEFAULT_SCORES_PATH, INT_MAX, REC_SIZE, REC_TERMINATOR, SCORE_LOW_BOUND
from curdle_core.record import encode_record, in_score_range, write_record
from curdle_scores.const import ERRORS, ErrorCode
from curdle_scores.scan import ReadError, ScoreFileError, SeekError, find_record


class ScoreRangeError(ScoreFileError):
    code = ErrorCode.SCORE_RANGE


class WriteError(ScoreFileError):
    code = ErrorCode.WRITE


@dataclass(frozen=True)
class AdjustResult:
    ok: bool
    code: str | None = None
    message: str | None = None
    detail: str | None = None
    score: int | None = None

    def as_dict(self) -> dict:
        if self.ok:
            return {"status": "PASS", "error_count": 0, "errors": [], "score": self.score}
        err = {"code": self.code, "message": self.message}
        if self.detail:
            err["detail"] = self.detail
        return {"status": "FAIL", "error_count": 1, "errors": [err]}


def _fail(code: str, detail: str | None = None) -> AdjustResult:
    return AdjustResult(ok=False, code=code, message=ERRORS[code], detail=detail)


@contextmanager
def _locked(fp: BinaryIO, enabled: bool = True):
    """Hold an exclusive advisory lock on ``fp`` for the duration of the context."""
    if not enabled:
        yield fp
        return
    fcntl.flock(fp.fileno(), fcntl.LOCK_EX)
    try:
        yield fp
    finally:
        fcntl.flock(fp.fileno(), fcntl.LOCK_UN)


def _store(fp: BinaryIO, name: str, score: int, offset: int) -> None:
    buf = encode_record(name, score)
    fp.flush()
    try:
        write_record(fp.fileno(), buf, offset)
    except OSError as e:
        raise WriteError(str(e)) from e


def _apply(fp: BinaryIO, name: str, delta: int) -> int:
    found = find_record(fp, name)

    if found is not None:
        offset_after, current = found
        new_score = current + delta
        if new_score > INT_MAX or new_score < SCORE_LOW_BOUND:
            raise ScoreRangeError(f"{current} + {delta} = {new_score} is outside [{SCORE_LOW_BOUND}, {INT_MAX}]")
        _store(fp, name, new_score, offset_after - REC_SIZE)
        return new_score

    if not in_score_range(delta):
        raise ScoreRangeError(f"Initial score {delta} is outside [{SCORE_LOW_BOUND}, {INT_MAX}]")

    try:
        end = fp.seek(0, os.SEEK_END)
    except OSError as e:
        raise SeekError(f"Cannot seek to end of scores file: {e}") from e

    # A trailing partial line would swallow the new record.
    try:
        last = os.pread(fp.fileno(), 1, end - 1) if end else REC_TERMINATOR
    except OSError as e:
        raise ReadError(f"Cannot read end of scores file: {e}") from e
    if last != REC_TERMINATOR:
        warn(f"Scores file does not end with a newline; record appended at offset {end} will not be readable")

    _store(fp, name, delta, end)
    return delta


def adjust_score(
    player_name: str,
    delta: int,
    path: Path | str | None = None,
    lock: bool = True,
) -> AdjustResult:
    """Add ``delta`` to ``player_name``'s score, creating the record if absent.

    The scores file must already exist. Either exactly one record ends up
    holding the new score or the file is left untouched. The file is closed
    on every path.
    """
    if not validate_name(player_name):
        return _fail(ErrorCode.INVALID_NAME, repr(player_name))

    path = Path(path) if path is not None else DEFAULT_SCORES_PATH
    try:
        fp = open(path, "r+b")
    except OSError as e:
        return _fail(ErrorCode.OPEN, str(e))

    with fp, _locked(fp, lock):
        try:
            score = _apply(fp, normalize_name(player_name), int(delta))
        except ScoreFileError as e:
            return _fail(e.code, str(e))

    return AdjustResult(ok=True, score=score)
