from __future__ import annotations

import argparse
import json
import sys
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from santadraw.core.config import load_settings
from santadraw.core.logging import setup_logging
from santadraw.engine import DrawEngine
from santadraw.services.draw_flow import DrawFlowError, run_group_draw, status_for, validate_group_draw

EXIT_OK = 0
EXIT_DRAW_FAILED = 1
EXIT_USAGE = 2


def load_draw_file(path: str) -> Dict[str, List[Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object.")
    participants = data.get("participants")
    if not isinstance(participants, list):
        raise ValueError(f'{path} must list participant IDs under "participants".')
    exclusions = data.get("exclusions", [])
    if not isinstance(exclusions, list):
        raise ValueError(f'"exclusions" in {path} must be a list of pairs.')
    return {"participants": participants, "exclusions": exclusions}


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"{value} must be at least 1")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="santadraw", description="Secret Santa draw engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="check whether a draw is possible")
    validate.add_argument("file", help='JSON file with "participants" and "exclusions"')
    validate.add_argument("--completed", action="store_true", help="the draw was already run")

    draw = subparsers.add_parser("draw", help="run the draw and print the assignments")
    draw.add_argument("file", help='JSON file with "participants" and "exclusions"')
    draw.add_argument("--seed", type=int, default=None, help="repeatable draw seed")
    draw.add_argument("--deadline", type=float, default=None, help="time budget in seconds")
    draw.add_argument("--attempts", type=positive_int, default=None, help="maximum generation attempts")
    draw.add_argument("--completed", action="store_true", help="the draw was already run")
    return parser


def _print(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _validate(args: argparse.Namespace, engine: DrawEngine, data: Dict[str, List[Any]]) -> int:
    report = validate_group_draw(
        data["participants"],
        data["exclusions"],
        draw_completed=args.completed,
        engine=engine,
    )
    _print(
        {
            "is_valid": report.is_valid,
            "can_draw": report.can_draw,
            "participant_count": report.participant_count,
            "exclusion_rule_count": report.exclusion_rule_count,
            "errors": report.errors,
            "warnings": report.warnings,
            "unmatched": list(report.unmatched),
        }
    )
    return EXIT_OK if report.is_valid else EXIT_DRAW_FAILED


def _draw(args: argparse.Namespace, engine: DrawEngine, data: Dict[str, List[Any]]) -> int:
    try:
        outcome = run_group_draw(
            data["participants"],
            data["exclusions"],
            draw_completed=args.completed,
            seed=args.seed,
            engine=engine,
        )
    except DrawFlowError as exc:
        _print({"state": "rejected", "errors": [str(exc)]})
        return EXIT_DRAW_FAILED

    if outcome.assignment is None:
        _print(
            {
                "state": outcome.state.value,
                "seed": outcome.seed,
                "status": status_for(outcome.error),
                "errors": [
                    {
                        "code": error.code.value,
                        "message": error.message,
                        "participants": list(error.participants),
                    }
                    for error in outcome.errors
                ],
            }
        )
        return EXIT_DRAW_FAILED

    _print(
        {
            "state": outcome.state.value,
            "seed": outcome.seed,
            "attempts": outcome.attempts,
            "assignments": [
                {"santa": santa, "recipient": recipient}
                for santa, recipient in outcome.assignment.items()
            ],
        }
    )
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_settings()
    setup_logging(settings.log_level, settings.log_path)

    try:
        data = load_draw_file(args.file)
    except (OSError, ValueError) as exc:
        logger.bind(path=args.file).error("Cannot read draw file: {error}", error=str(exc))
        parser.exit(EXIT_USAGE, f"santadraw: error: {exc}\n")

    engine = DrawEngine.from_settings(settings)
    if args.command == "draw":
        if args.attempts is not None or args.deadline is not None:
            engine = DrawEngine(
                max_attempts=settings.draw_max_attempts if args.attempts is None else args.attempts,
                deadline=settings.draw_deadline_seconds if args.deadline is None else args.deadline,
            )
        return _draw(args, engine, data)
    return _validate(args, engine, data)


if __name__ == "__main__":
    sys.exit(main())
