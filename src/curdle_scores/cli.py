import json
from pathlib import Path

import click

from curdle_core.protocol import DEFAULT_SCORES_PATH
from .engine import adjust_score
from .scan import RecordScanner, ScoreFileError

CANONICAL_JSON_KW = {"sort_keys": True, "separators": (",", ":"), "ensure_ascii": False}

scores_file_option = click.option(
    "--file",
    "scores_file",
    type=click.Path(dir_okay=False, path_type=Path),
    envvar="CURDLE_SCORES_FILE",
    default=DEFAULT_SCORES_PATH,
    show_default=True,
    help="Scores file to operate on",
)


@click.group()
def main():
    pass


@main.command("adjust", context_settings={"ignore_unknown_options": True})
@click.argument("delta", type=int)
@click.option("--name", "player_name", prompt="Enter player name", help="Player whose score changes")
@scores_file_option
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--no-lock", is_flag=True, help="Skip the advisory file lock")
def adjust_cmd(delta: int, player_name: str, scores_file: Path, as_json: bool, no_lock: bool):
    """Add DELTA to a player's score, creating the record if needed."""
    result = adjust_score(player_name, delta, scores_file, lock=not no_lock)
    if as_json:
        click.echo(json.dumps(result.as_dict(), **CANONICAL_JSON_KW))
    elif result.ok:
        click.echo("Score write success")
    else:
        reason = f"{result.message}: {result.detail}" if result.detail else result.message
        click.echo(f"FATAL: {reason}", err=True)
    if not result.ok:
        raise SystemExit(1)


@main.command("check")
@scores_file_option
def check_cmd(scores_file: Path):
    """Decode every record and report scan stats."""
    try:
        with open(scores_file, "rb") as f:
            stats = RecordScanner(f).audit()
    except (OSError, ScoreFileError) as e:
        click.echo(f"FATAL: {e}", err=True)
        raise SystemExit(1)
    click.echo(json.dumps(stats, **CANONICAL_JSON_KW))
    if stats["bad_names"] or stats["bad_scores"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
