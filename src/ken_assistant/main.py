"""CLI entrypoint for one-shot issue queries.

The interactive session (REPL, history, autocompletion) lives outside this package;
these commands expose the same orchestration core non-interactively.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from ken_assistant import __version__
from ken_assistant.answer import compose_answer
from ken_assistant.config import AssistantSettings
from ken_assistant.errors import (
    REFRESH_SUGGESTION,
    AllStrategiesFailedError,
    FetchError,
    NoContextError,
)
from ken_assistant.llm.factory import LLMFactory
from ken_assistant.logging import configure_logging
from ken_assistant.query.aggregator import AggregatedResponse
from ken_assistant.service import QueryOrchestrator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIG = 2
EXIT_NO_CONTEXT = 3
EXIT_ALL_FAILED = 4
EXIT_FETCH = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ken",
        description="Ask questions about tracker issues in natural language",
    )
    parser.add_argument("--version", action="version", version=f"ken-assistant {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_project(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--project",
            default=None,
            help="Project id or path (defaults to KEN_DEFAULT_PROJECT)",
        )

    ask = subparsers.add_parser("ask", help="Find issues matching a natural-language question")
    ask.add_argument("query", help="The question, e.g. 'open bugs assigned to alice'")
    add_project(ask)
    ask.add_argument(
        "--summarize",
        action="store_true",
        help="Have the configured LLM phrase the answer",
    )
    ask.add_argument("--json", action="store_true", help="Print the raw response as JSON")

    plan = subparsers.add_parser("plan", help="Show the search strategies a question maps to")
    plan.add_argument("query", help="The question to plan")
    add_project(plan)

    refresh = subparsers.add_parser(
        "refresh-context",
        help="Fetch labels, members and milestones for a project",
    )
    add_project(refresh)

    show = subparsers.add_parser("show-context", help="Print the cached project context")
    add_project(show)

    return parser


def _print_response(response: AggregatedResponse) -> None:
    if not response.records:
        print("No matching issues found.")
    for record in response.records:
        issue = record.issue
        assignees = ", ".join(issue.assignees) or "unassigned"
        labels = ", ".join(issue.labels) or "no labels"
        print(f"#{issue.id} [{issue.state}] {issue.title} ({assignees}; {labels})")

    if response.limit_reached:
        print("Result limit reached. There may be more issues; narrow the question.")
    if response.partial and response.attempted:
        print(f"Partial results: no strategy was specific enough ({len(response.attempted)} tried).")
    for failure in response.failures:
        print(f"Strategy failed: {failure.strategy}: {failure.error}", file=sys.stderr)
    if response.context_warning:
        print(f"Warning: {response.context_warning}", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = AssistantSettings()
        project_id = settings.resolve_project(args.project)
    except (ValidationError, ValueError) as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return EXIT_CONFIG

    configure_logging(settings.log_level)

    orchestrator = QueryOrchestrator.from_settings(settings)
    try:
        if args.command == "ask":
            response = orchestrator.plan_and_execute(args.query, project_id)
            if args.json:
                print(response.model_dump_json(indent=2))
            elif args.summarize:
                provider = LLMFactory.create(settings.llm)
                print(
                    compose_answer(
                        provider, args.query, response, orchestrator.store.get(project_id)
                    )
                )
            else:
                _print_response(response)
            return EXIT_OK

        if args.command == "plan":
            for rank, strategy in enumerate(orchestrator.plan(args.query, project_id), start=1):
                print(f"{rank}. {strategy.name}")
            return EXIT_OK

        if args.command == "refresh-context":
            context = orchestrator.refresh_context(project_id)
            print(
                f"Refreshed context for {project_id}: {len(context.labels)} labels, "
                f"{len(context.members)} members, {len(context.milestones)} milestones"
            )
            return EXIT_OK

        if args.command == "show-context":
            summary = orchestrator.context_summary(project_id)
            if summary is None:
                print(f"No cached context for {project_id}. {REFRESH_SUGGESTION}")
                return EXIT_NO_CONTEXT
            print(summary, end="")
            return EXIT_OK

        logger.error("Unknown command", extra={"command": args.command})
        return EXIT_CONFIG

    except NoContextError as e:
        logger.warning(str(e), extra={"reason": e.reason})
        print(f"{e} ({e.reason}). {e.suggestion}", file=sys.stderr)
        return EXIT_NO_CONTEXT

    except AllStrategiesFailedError as e:
        logger.warning(str(e), extra={"reason": e.reason, "failures": len(e.failures)})
        print(f"{e}\n{e.suggestion}", file=sys.stderr)
        return EXIT_ALL_FAILED

    except FetchError as e:
        logger.warning(str(e), extra={"project_id": e.project_id, "retrieval": e.retrieval})
        print(str(e), file=sys.stderr)
        return EXIT_FETCH

    except Exception:
        logger.exception("Command failed")
        return EXIT_UNEXPECTED

    finally:
        orchestrator.close()


if __name__ == "__main__":
    raise SystemExit(main())
