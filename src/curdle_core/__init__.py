"""Curdle Core - Scores file record layout and codec."""
from .names import validate_name, normalize_name
from .record import ScoreStatus, parse_score, encode_record, decode_name, decode_score, decode_record

__all__ = [
    "validate_name",
    "normalize_name",
    "ScoreStatus",
    "parse_score",
    "encode_record",
    "decode_name",
    "decode_score",
    "decode_record",
]
