import sys
from pathlib import Path

from curdle_core.protocol import REC_SIZE, SCORE_OFF

def main():
    if len(sys.argv) not in (2, 3):
        print("Usage: corrupt_score_field.py <file> [record_index]")
        raise SystemExit(2)

    p = Path(sys.argv[1])
    index = int(sys.argv[2]) if len(sys.argv) == 3 else 0
    b = bytearray(p.read_bytes())
    if len(b) < (index + 1) * REC_SIZE:
        print(f"File has no record {index}.")
        raise SystemExit(2)

    # Overwrite the first score byte with a letter so the field no longer parses.
    # Assumes the file holds only whole records before the target.
    idx = index * REC_SIZE + SCORE_OFF
    b[idx] = ord("x")
    p.write_bytes(bytes(b))
    print(f"Corrupted score field at offset {idx} in {p}")

if __name__ == "__main__":
    main()
