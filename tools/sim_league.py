"""Play random rounds against a scores file and check it against a tally."""
import random
import sys
from pathlib import Path

from curdle_core.record import decode_record
from curdle_scores import adjust_score


def player_names(count: int, rng: random.Random) -> list[str]:
    names = set()
    while len(names) < count:
        names.add("p" + "".join(rng.choice("abcdefghijklmnopqrstuvwxyz0123456789") for _ in range(rng.randint(1, 8))))
    return sorted(names)


def read_scores(path: Path) -> dict[str, int]:
    on_disk: dict[str, int] = {}
    with open(path, "rb") as f:
        for line in f:
            name, score = decode_record(line)
            if name in on_disk:
                raise SystemExit(f"FATAL: duplicate record for {name}")
            on_disk[name] = score
    return on_disk


def simulate_league(scores_file: str, players: int = 5, rounds: int = 50, seed: int | None = None) -> dict[str, int]:
    rng = random.Random(seed)
    path = Path(scores_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch()

    names = player_names(players, rng)
    # Earlier runs against the same file carry over.
    tally = read_scores(path)

    for _ in range(rounds):
        name = rng.choice(names)
        delta = rng.randint(-1000, 1000)
        result = adjust_score(name, delta, path)
        if not result.ok:
            raise SystemExit(f"FATAL: round failed for {name}: {result.message} {result.detail or ''}")
        tally[name] = tally.get(name, 0) + delta

    on_disk = read_scores(path)
    if on_disk != tally:
        raise SystemExit(f"FATAL: file {on_disk} != tally {tally}")

    print(f"SIMULATED: {len(tally)} players, {rounds} rounds in {path}")
    return tally


if __name__ == "__main__":
    # Usage:
    #   python tools/sim_league.py SCORES_FILE [--players N] [--rounds N] [--seed S]

    args = [a for a in sys.argv[1:] if a]

    def pop_value(arg_list: list[str], flag: str, default: int | None) -> tuple[int | None, list[str]]:
        """Remove ``flag VALUE`` from an argv-style list."""
        if flag not in arg_list:
            return default, arg_list
        i = arg_list.index(flag)
        if i + 1 >= len(arg_list):
            raise SystemExit(f"{flag} requires a value")
        return int(arg_list[i + 1]), arg_list[:i] + arg_list[i + 2:]

    players, args = pop_value(args, "--players", 5)
    rounds, args = pop_value(args, "--rounds", 50)
    seed, args = pop_value(args, "--seed", None)

    out = args[0] if args else "scores"
    simulate_league(out, players=players, rounds=rounds, seed=seed)
