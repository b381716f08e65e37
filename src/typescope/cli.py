"""TypeScope CLI.

Usage:
    typescope score [--input PATH] [--user-id ID]
    typescope integral score [--input PATH]
    typescope config show
    typescope snapshots list [--limit N]
    typescope audit log [--limit N]
    typescope db upgrade [--revision REV]

Input is read from stdin when --input is omitted. Output is JSON on stdout.

Exit codes:
    0: Success
    1: Internal error (including configuration and store failures)
    2: Invalid input
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Any

from typescope.errors import InputValidationError, TypeScopeError


def _output_json(data: Any) -> None:
    """Output JSON to stdout with deterministic ordering."""
    print(json.dumps(data, sort_keys=True, indent=2, default=str))


def _error(code: str, message: str) -> dict[str, Any]:
    return {"error": {"code": code, "message": message}}


def _load_json_input(input_path: str | None) -> tuple[Any, str | None]:
    """Load JSON from file or stdin.

    Returns:
        Tuple of (parsed_data, error_message). If error_message is not None,
        parsed_data should be ignored.
    """
    try:
        if input_path:
            with open(input_path, encoding="utf-8") as f:
                content = f.read()
        else:
            content = sys.stdin.read()

        if not content.strip():
            return None, "Empty input"

        return json.loads(content), None
    except FileNotFoundError:
        return None, f"File not found: {input_path}"
    except json.JSONDecodeError as e:
        return None, f"Invalid JSON: {e}"
    except OSError as e:
        return None, f"Cannot read input: {e}"


def cmd_score(args: argparse.Namespace) -> int:
    """Score a JSON array of responses with the effective configuration."""
    from typescope.config.store import get_config_store
    from typescope.scoring.engine import score_profile

    data, error_msg = _load_json_input(args.input)
    if error_msg is not None:
        _output_json(_error("INVALID_JSON", error_msg))
        return 2
    if not isinstance(data, list):
        _output_json(_error("INVALID_RESPONSES", "Input must be a JSON array of responses"))
        return 2

    store = get_config_store()
    try:
        profile = score_profile(data, store.load_scoring_overrides())
    except InputValidationError as e:
        _output_json(_error("INVALID_RESPONSES", str(e)))
        return 2
    profile = store.apply_user_overrides(profile, args.user_id)
    _output_json(profile.model_dump(mode="json"))
    return 0


def cmd_integral_score(args: argparse.Namespace) -> int:
    """Score a JSON object of question id -> option index."""
    from typescope.integral.scorer import score_responses

    data, error_msg = _load_json_input(args.input)
    if error_msg is not None:
        _output_json(_error("INVALID_JSON", error_msg))
        return 2
    if not isinstance(data, dict):
        _output_json(_error("INVALID_ANSWERS", "Input must be a JSON object"))
        return 2

    try:
        answers = {int(question_id): option for question_id, option in data.items()}
        detail = score_responses(answers)
    except ValueError:
        _output_json(_error("INVALID_ANSWERS", "Question ids must be integers"))
        return 2
    except InputValidationError as e:
        _output_json(_error("INVALID_ANSWERS", str(e)))
        return 2
    _output_json(detail.model_dump(mode="json"))
    return 0


def cmd_config_show(args: argparse.Namespace) -> int:
    from typescope.config.store import get_config_store

    store = get_config_store()
    record = store.load_record()
    if record is None:
        _output_json({"version": 0, "overrides": {}})
        return 0
    _output_json(
        {
            "version": record.version,
            "overrides": record.overrides.to_document(),
            "updated_by": record.updated_by,
            "updated_at": record.updated_at.isoformat(),
            "mapping_weights": store.mapping_weights(),
        }
    )
    return 0


def cmd_snapshots_list(args: argparse.Namespace) -> int:
    from typescope.audit.service import get_audit_service

    snapshots = get_audit_service().get_snapshots(args.limit)
    _output_json([snapshot.model_dump(mode="json") for snapshot in snapshots])
    return 0


def cmd_audit_log(args: argparse.Namespace) -> int:
    from typescope.audit.service import get_audit_service

    entries = get_audit_service().get_audit_log(args.limit)
    _output_json([entry.model_dump(mode="json") for entry in entries])
    return 0


def cmd_db_upgrade(args: argparse.Namespace) -> int:
    from typescope.persistence.migrate import run_upgrade

    run_upgrade(revision=args.revision)
    _output_json({"upgraded_to": args.revision})
    return 0


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="typescope",
        description="TypeScope - personality assessment scoring CLI",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    score_parser = subparsers.add_parser("score", help="Score a response vector")
    score_parser.add_argument(
        "--input",
        default=None,
        metavar="PATH",
        help="Path to a JSON array of 108 responses (reads from stdin if omitted)",
    )
    score_parser.add_argument(
        "--user-id",
        default=None,
        metavar="ID",
        help="Apply this user's display overrides",
    )

    integral_parser = subparsers.add_parser("integral", help="Integral level assessment")
    integral_subparsers = integral_parser.add_subparsers(dest="integral_command")
    integral_score = integral_subparsers.add_parser(
        "score", help="Score question-bank answers"
    )
    integral_score.add_argument(
        "--input",
        default=None,
        metavar="PATH",
        help="Path to a JSON object of question id -> option index",
    )

    config_parser = subparsers.add_parser("config", help="Scoring configuration")
    config_subparsers = config_parser.add_subparsers(dest="config_command")
    config_subparsers.add_parser("show", help="Show the current global overrides")

    snapshots_parser = subparsers.add_parser("snapshots", help="Configuration snapshots")
    snapshots_subparsers = snapshots_parser.add_subparsers(dest="snapshots_command")
    snapshots_list = snapshots_subparsers.add_parser("list", help="List snapshots, newest first")
    snapshots_list.add_argument("--limit", type=int, default=50)

    audit_parser = subparsers.add_parser("audit", help="Configuration audit trail")
    audit_subparsers = audit_parser.add_subparsers(dest="audit_command")
    audit_log = audit_subparsers.add_parser("log", help="Show audit entries, newest first")
    audit_log.add_argument("--limit", type=int, default=100)

    db_parser = subparsers.add_parser("db", help="Database schema management")
    db_subparsers = db_parser.add_subparsers(dest="db_command")
    db_upgrade = db_subparsers.add_parser("upgrade", help="Apply migrations")
    db_upgrade.add_argument("--revision", default="head")

    return parser


_SUBCOMMANDS: dict[tuple[str, str | None], Any] = {
    ("score", None): cmd_score,
    ("integral", "score"): cmd_integral_score,
    ("config", "show"): cmd_config_show,
    ("snapshots", "list"): cmd_snapshots_list,
    ("audit", "log"): cmd_audit_log,
    ("db", "upgrade"): cmd_db_upgrade,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Exit codes:
        0: Success
        1: Internal error
        2: Invalid input
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    subcommand = getattr(args, f"{args.command}_command", None)
    handler = _SUBCOMMANDS.get((args.command, subcommand))
    if handler is None:
        parser.parse_args([args.command, "--help"])
        return 0

    try:
        result: int = handler(args)
        return result
    except TypeScopeError as e:
        _output_json(_error(type(e).__name__, str(e)))
        return 1
    except Exception as e:
        # Fail closed: unexpected errors return exit code 1
        _output_json(_error("INTERNAL_ERROR", str(e)))
        return 1


if __name__ == "__main__":
    sys.exit(main())
