import fcntl
import os

import pytest

from curdle_core.protocol import INT_MAX, REC_SIZE, SCORE_LOW_BOUND
from curdle_core.record import decode_record, encode_record
from curdle_scores import RecordScanner, adjust_score, engine, find_record
from curdle_scores.const import ErrorCode


@pytest.fixture
def scores(tmp_path):
    p = tmp_path / "scores"
    p.write_bytes(b"")
    return p


def test_empty_file_append(scores):
    result = adjust_score("bob", -5, scores)
    assert result.ok
    assert result.score == -5

    data = scores.read_bytes()
    assert len(data) == REC_SIZE
    assert decode_record(data) == ("bob", -5)


def test_miss_then_hit(scores):
    assert adjust_score("carol", 30, scores).ok
    assert adjust_score("carol", 12, scores).ok

    data = scores.read_bytes()
    assert len(data) == REC_SIZE
    assert decode_record(data) == ("carol", 42)


def test_rewrite_in_place(scores):
    scores.write_bytes(encode_record("zed", 1) + b"alice\x00\x00\x00\x00\x00100       \n" + encode_record("bob", 2))
    before = scores.read_bytes()

    result = adjust_score("alice", 50, scores)
    assert result.ok
    assert result.score == 150

    after = scores.read_bytes()
    assert len(after) == len(before)
    assert after[REC_SIZE:2 * REC_SIZE] == b"alice\x00\x00\x00\x00\x00150       \n"
    assert after[:REC_SIZE] == before[:REC_SIZE]
    assert after[2 * REC_SIZE:] == before[2 * REC_SIZE:]


def test_overflow_leaves_record_untouched(scores):
    scores.write_bytes(encode_record("max", INT_MAX))
    before = scores.read_bytes()

    result = adjust_score("max", 1, scores)
    assert not result.ok
    assert result.code == ErrorCode.SCORE_RANGE
    assert scores.read_bytes() == before


def test_underflow_leaves_record_untouched(scores):
    scores.write_bytes(encode_record("min", SCORE_LOW_BOUND))
    before = scores.read_bytes()

    result = adjust_score("min", -1, scores)
    assert not result.ok
    assert result.code == ErrorCode.SCORE_RANGE
    assert scores.read_bytes() == before


def test_initial_score_out_of_range_is_not_appended(scores):
    result = adjust_score("bob", INT_MAX + 1, scores)
    assert result.code == ErrorCode.SCORE_RANGE
    assert scores.read_bytes() == b""


@pytest.mark.parametrize("name", ["tencharsxx", "a b", "a\tb", ""])
def test_invalid_name_rejected_before_open(tmp_path, name):
    # The file does not exist, so an open attempt would report E_OPEN instead.
    result = adjust_score(name, 1, tmp_path / "missing")
    assert result.code == ErrorCode.INVALID_NAME
    assert not (tmp_path / "missing").exists()


def test_missing_file_is_open_failure(tmp_path):
    result = adjust_score("bob", 1, tmp_path / "missing")
    assert result.code == ErrorCode.OPEN
    assert result.as_dict()["status"] == "FAIL"


def test_stray_lines_are_skipped(scores):
    scores.write_bytes(b"junk\n" + b"\n" + b"x" * 40 + b"\n" + encode_record("bob", 5))

    with pytest.warns(UserWarning, match="Skipping"):
        result = adjust_score("bob", 1, scores)
    assert result.ok

    data = scores.read_bytes()
    assert data.startswith(b"junk\n\n")
    assert decode_record(data[-REC_SIZE:]) == ("bob", 6)


def test_corrupt_matched_record_aborts(scores):
    scores.write_bytes(b"bob\x00\x00\x00\x00\x00\x00\x00abc       \n" + encode_record("bob", 5))
    before = scores.read_bytes()

    result = adjust_score("bob", 1, scores)
    assert result.code == ErrorCode.CORRUPT_RECORD
    assert scores.read_bytes() == before


def test_corrupt_record_of_other_player_is_ignored(scores):
    scores.write_bytes(b"bob\x00\x00\x00\x00\x00\x00\x00abc       \n" + encode_record("alice", 5))

    assert adjust_score("alice", 1, scores).ok
    assert decode_record(scores.read_bytes()[REC_SIZE:]) == ("alice", 6)


def test_first_match_wins(scores):
    scores.write_bytes(encode_record("bob", 1) + encode_record("bob", 100))

    assert adjust_score("bob", 1, scores).ok
    data = scores.read_bytes()
    assert decode_record(data[:REC_SIZE]) == ("bob", 2)
    assert decode_record(data[REC_SIZE:]) == ("bob", 100)


def test_legacy_nul_padded_score_is_rewritten(scores):
    scores.write_bytes(b"old\x00\x00\x00\x00\x00\x00\x0077\x00\x00\x00\x00\x00\x00\x00\x00\n")

    assert adjust_score("old", 3, scores, lock=False).ok
    assert scores.read_bytes() == encode_record("old", 80)


def test_append_after_partial_line_warns(scores):
    scores.write_bytes(b"partial")

    with pytest.warns(UserWarning, match="newline"):
        assert adjust_score("bob", 1, scores).ok
    assert scores.read_bytes() == b"partial" + encode_record("bob", 1)


def test_find_record_reports_offset_after_match(scores):
    scores.write_bytes(encode_record("a", 1) + encode_record("b", 2))

    with open(scores, "rb") as f:
        assert find_record(f, "b") == (2 * REC_SIZE, 2)
        assert find_record(f, "c") is None


def test_audit_counts(scores):
    scores.write_bytes(encode_record("a", 1) + b"stray\n" + b"abcdefghij" + b"1         \n" + b"c\x00\x00\x00\x00\x00\x00\x00\x00\x00??????????\n")

    with open(scores, "rb") as f:
        with pytest.warns(UserWarning):
            stats = RecordScanner(f).audit()
    assert stats["lines"] == 4
    assert stats["records"] == 3
    assert stats["skipped_lines"] == 1
    assert stats["bad_names"] == 1
    assert stats["bad_scores"] == 1


class _FlakyFile:
    """Wraps a real file, failing seeks or reads on request."""

    def __init__(self, f, fail_seek_whence=None, fail_read=False):
        self._f = f
        self.fail_seek_whence = fail_seek_whence
        self.fail_read = fail_read

    def __getattr__(self, name):
        return getattr(self._f, name)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self._f.close()

    def __iter__(self):
        if self.fail_read:
            raise OSError("read failed")
        return iter(self._f)

    def seek(self, offset, whence=os.SEEK_SET):
        if whence == self.fail_seek_whence:
            raise OSError("seek failed")
        return self._f.seek(offset, whence)


def _open_flaky(monkeypatch, **kw):
    real_open = open
    monkeypatch.setattr(engine, "open", lambda p, mode: _FlakyFile(real_open(p, mode), **kw), raising=False)


def test_short_write_is_write_failure(scores, monkeypatch):
    scores.write_bytes(encode_record("bob", 5))
    before = scores.read_bytes()
    monkeypatch.setattr("curdle_core.record.os.pwrite", lambda fd, buf, offset: 10)

    result = adjust_score("bob", 1, scores)
    assert result.code == ErrorCode.WRITE
    assert "10 of 21" in result.detail
    assert scores.read_bytes() == before


def test_write_oserror_is_write_failure(scores, monkeypatch):
    def broken_pwrite(fd, buf, offset):
        raise OSError("disk full")

    monkeypatch.setattr("curdle_core.record.os.pwrite", broken_pwrite)

    result = adjust_score("bob", 1, scores)
    assert result.code == ErrorCode.WRITE
    assert scores.read_bytes() == b""


def test_rewind_failure_is_seek_failure(scores, monkeypatch):
    scores.write_bytes(encode_record("bob", 5))
    _open_flaky(monkeypatch, fail_seek_whence=os.SEEK_SET)

    result = adjust_score("bob", 1, scores)
    assert result.code == ErrorCode.SEEK
    assert scores.read_bytes() == encode_record("bob", 5)


def test_seek_to_end_failure_is_seek_failure(scores, monkeypatch):
    scores.write_bytes(encode_record("bob", 5))
    _open_flaky(monkeypatch, fail_seek_whence=os.SEEK_END)

    result = adjust_score("alice", 1, scores)
    assert result.code == ErrorCode.SEEK
    assert scores.read_bytes() == encode_record("bob", 5)


def test_read_failure_is_reported(scores, monkeypatch):
    scores.write_bytes(encode_record("bob", 5))
    _open_flaky(monkeypatch, fail_read=True)

    result = adjust_score("bob", 1, scores)
    assert result.code == ErrorCode.READ
    assert result.as_dict()["errors"][0]["message"] == "File read error"
    assert scores.read_bytes() == encode_record("bob", 5)


def test_lock_excludes_other_writers(scores, monkeypatch):
    real_find = engine.find_record
    conflicts = []

    def find_while_locked(fp, name):
        with open(scores, "rb") as other:
            try:
                fcntl.flock(other.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError:
                conflicts.append(name)
            else:
                fcntl.flock(other.fileno(), fcntl.LOCK_UN)
        return real_find(fp, name)

    monkeypatch.setattr(engine, "find_record", find_while_locked)

    assert adjust_score("bob", 1, scores).ok
    assert conflicts == ["bob"]

    assert adjust_score("bob", 1, scores, lock=False).ok
    assert conflicts == ["bob"]

    # Released once the update is done.
    with open(scores, "rb") as other:
        fcntl.flock(other.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        fcntl.flock(other.fileno(), fcntl.LOCK_UN)
    assert decode_record(scores.read_bytes()) == ("bob", 2)
