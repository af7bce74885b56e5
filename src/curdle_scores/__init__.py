"""Curdle Scores - Persistent leaderboard updates."""
from .engine import AdjustResult, adjust_score
from .scan import RecordScanner, find_record

__all__ = ["AdjustResult", "adjust_score", "RecordScanner", "find_record"]
