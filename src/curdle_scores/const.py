ERRORS = {
  "E_INVALID_NAME": "Player name invalid",
  "E_OPEN": "File open error",
  "E_CORRUPT_RECORD": "Error found in record",
  "E_SCORE_RANGE": "Score out of range",
  "E_WRITE": "Error writing record",
  "E_SEEK": "File seek error",
  "E_READ": "File read error",
}


class ErrorCode:
    INVALID_NAME = "E_INVALID_NAME"
    OPEN = "E_OPEN"
    CORRUPT_RECORD = "E_CORRUPT_RECORD"
    SCORE_RANGE = "E_SCORE_RANGE"
    WRITE = "E_WRITE"
    SEEK = "E_SEEK"
    READ = "E_READ"
