"""Main entry point for CLI usage."""

import argparse
import json
import logging
import sys
from pathlib import Path

from src.config import settings
from src.errors import DataStoreError, FatalTurnError
from src.models.dialogue import DialogueTurn, ProfileFeedback


def _load_json_list(path: str | None) -> list:
    """Load a JSON array from a file, or [] when no file was given."""
    if not path:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array")
    return data


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Conversational candidate search over ClickHouse",
    )
    parser.add_argument(
        "--message",
        type=str,
        help="New recruiter message for this turn",
    )
    parser.add_argument(
        "--history",
        type=str,
        help="JSON file with prior turns: [{\"role\": ..., \"content\": ...}]",
    )
    parser.add_argument(
        "--feedback",
        type=str,
        help="JSON file with feedback: [{\"profileId\", \"profileName\", \"interesting\", \"reason\"}]",
    )
    parser.add_argument(
        "--no-execute",
        action="store_true",
        help="Only draft the query, do not run it",
    )
    parser.add_argument(
        "--export",
        type=str,
        metavar="FILE.csv",
        help="Export all matching candidates to a CSV file",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    args = parser.parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.debug else getattr(logging, settings.log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.message and not args.export:
        parser.print_help()
        sys.exit(1)

    history = [DialogueTurn.model_validate(t) for t in _load_json_list(args.history)]
    feedback = [ProfileFeedback.model_validate(f) for f in _load_json_list(args.feedback)]

    try:
        if args.export:
            if args.message:
                history.append(DialogueTurn(role="user", content=args.message))
            _run_export(history, feedback, args.export)
        else:
            _run_turn(args.message, history, feedback, execute=not args.no_execute)
    except (FatalTurnError, DataStoreError) as e:
        print(f"Error ({e.kind}): {e}", file=sys.stderr)
        sys.exit(2)


def _create_agent():
    """Create the agent wired to the configured backends."""
    from src.agents.graph import ConversationalSearchAgent
    from src.services.clickhouse_client import ClickHouseClient
    from src.services.ollama_client import OllamaClient

    return ConversationalSearchAgent(OllamaClient(), ClickHouseClient())


def _run_turn(
    message: str,
    history: list[DialogueTurn],
    feedback: list[ProfileFeedback],
    execute: bool,
) -> None:
    """Run one conversational turn and print the result."""
    agent = _create_agent()
    result = agent.process_turn(message, history, feedback, execute=execute)

    print("\n" + "=" * 50)
    print("SEARCH RESULT")
    print("=" * 50)
    print(f"\n{result.assistant_message}")
    print(f"\nQuery:\n{result.data_query}")
    if result.explanation:
        print(f"\nExplanation: {result.explanation}")
    if result.search_criteria_summary:
        print(f"Criteria: {result.search_criteria_summary}")

    if execute:
        print(f"\nShowing {len(result.rows)} of {result.total_count} match(es)"
              + (" (relaxed)" if result.relaxed else ""))
        for i, row in enumerate(result.rows, 1):
            name = row.get("full_name", row.get("profile_id", ""))
            title = row.get("headline") or row.get("current_job_title") or ""
            print(f"  {i}. {name} - {title}")

    if result.warnings:
        print("\nWarnings:")
        for warning in result.warnings:
            print(f"  - {warning}")


def _run_export(
    history: list[DialogueTurn],
    feedback: list[ProfileFeedback],
    filepath: str,
) -> None:
    """Export matching candidates to CSV."""
    from src.search.export import records_to_csv

    agent = _create_agent()
    records = agent.export_candidates(history, feedback)
    Path(filepath).write_text(records_to_csv(records), encoding="utf-8")
    print(f"Exported {len(records)} candidate(s) to {filepath}")


if __name__ == "__main__":
    main()
