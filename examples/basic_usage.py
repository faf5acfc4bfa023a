#!/usr/bin/env python3
"""Programmatic query example.

This demonstrates using the orchestrator directly instead of the `ken` CLI:

* load settings from `.env`
* refresh the project context (labels, members, milestones) if asked to
* answer one natural-language question and show which strategies matched

The project is passed as an argument, falling back to `KEN_DEFAULT_PROJECT`.
"""

from __future__ import annotations

import argparse
from typing import Sequence

from ken_assistant.config import AssistantSettings
from ken_assistant.errors import OrchestrationError
from ken_assistant.logging import configure_logging
from ken_assistant.service import QueryOrchestrator


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask one issue question (programmatic example).")
    parser.add_argument("question", help='e.g. "open bugs assigned to alice"')
    parser.add_argument("--project", default=None, help='Project path, e.g. "group/project"')
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Fetch fresh project context before asking",
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = AssistantSettings()
    configure_logging(settings.log_level)
    project_id = settings.resolve_project(args.project)

    orchestrator = QueryOrchestrator.from_settings(settings)
    try:
        if args.refresh:
            context = orchestrator.refresh_context(project_id)
            print(f"Context: {len(context.labels)} labels, {len(context.members)} members")

        for rank, strategy in enumerate(orchestrator.plan(args.question, project_id), start=1):
            print(f"strategy {rank}: {strategy.name}")

        response = orchestrator.plan_and_execute(args.question, project_id)
    except OrchestrationError as exc:
        print(f"{exc}\n{exc.suggestion or ''}")
        return 1
    finally:
        orchestrator.close()

    for record in response.records:
        print(f"#{record.issue.id} {record.issue.title}  <- {', '.join(record.strategies)}")
    if response.partial:
        print("(partial results: no strategy was specific enough)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
