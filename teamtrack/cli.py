"""
TeamTrack CLI — bootstrap and reporting commands.

Commands:
- teamtrack init           — Create tables, seed bootstrap admin/manager accounts
- teamtrack check-config   — Validate teamtrack.yaml and print the effective settings
- teamtrack report ID      — Weekly report (or --summary) for a project, as a given user
- teamtrack users          — List registered accounts with their roles
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional

from teamtrack.engine.config import TeamTrackConfig, load_config
from teamtrack.engine.context import Actor
from teamtrack.engine.errors import TeamTrackConfigError, TeamTrackError
from teamtrack.runtime import TeamTrackRuntime

logger = logging.getLogger("teamtrack.cli")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="teamtrack",
        description="TeamTrack — project and task tracker",
    )
    parser.add_argument("--config", help="Path to teamtrack.yaml (default: auto-discover)")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create tables and seed bootstrap accounts")
    subparsers.add_parser("check-config", help="Validate configuration")
    subparsers.add_parser("users", help="List user accounts")

    report_parser = subparsers.add_parser("report", help="Generate a project report")
    report_parser.add_argument("project_id", help="Project ID")
    report_parser.add_argument("--user-id", required=True, help="Act as this user")
    report_parser.add_argument(
        "--summary", action="store_true", help="Plain status summary instead of the weekly report",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return 1

    try:
        config = load_config(args.config)
    except TeamTrackConfigError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 1

    commands = {
        "init": cmd_init,
        "check-config": cmd_check_config,
        "users": cmd_users,
        "report": cmd_report,
    }
    try:
        return commands[args.command](config, args)
    except TeamTrackError as e:
        print(f"{e.kind}: {e.message}", file=sys.stderr)
        return 2


def cmd_init(config: TeamTrackConfig, args: argparse.Namespace) -> int:
    runtime = TeamTrackRuntime(config)
    runtime.startup(create_tables=True)
    try:
        created = runtime.auth.seed_bootstrap_accounts()
        print(f"Database ready at {config.database.url} ({created} bootstrap account(s) created)")
    finally:
        asyncio.run(runtime.shutdown())
    return 0


def cmd_check_config(config: TeamTrackConfig, args: argparse.Namespace) -> int:
    print(f"name:        {config.name}")
    print(f"environment: {config.environment}")
    print(f"database:    {config.database.url}")
    print(f"assistant:   {config.assistant.model} (api key {'set' if config.assistant.api_key else 'missing'})")
    print(f"bootstrap:   admin={'yes' if config.bootstrap.admin else 'no'}, "
          f"manager={'yes' if config.bootstrap.manager else 'no'}")
    if not config.security.token_secret:
        print("warning: security.token_secret is not set", file=sys.stderr)
    return 0


def cmd_users(config: TeamTrackConfig, args: argparse.Namespace) -> int:
    runtime = TeamTrackRuntime(config)
    runtime.startup()
    try:
        users = runtime.store.list_users()
        for user in users:
            print(f"{user.id}  {user.role.value:<8} {user.email}")
        print(f"{len(users)} user(s)")
    finally:
        asyncio.run(runtime.shutdown())
    return 0


def cmd_report(config: TeamTrackConfig, args: argparse.Namespace) -> int:
    return asyncio.run(_report(config, args.project_id, args.user_id, args.summary))


async def _report(config: TeamTrackConfig, project_id: str, user_id: str, summary: bool) -> int:
    runtime = TeamTrackRuntime(config)
    runtime.startup()
    try:
        user = runtime.store.find_user(user_id)
        if user is None:
            print(f"Unknown user: {user_id}", file=sys.stderr)
            return 1
        actor = Actor(id=user.id, role=user.role)
        if summary:
            text = await runtime.reports.project_summary(project_id, actor)
        else:
            text = await runtime.reports.weekly_report(project_id, actor)
        print(text)
        return 0
    finally:
        await runtime.shutdown()


if __name__ == "__main__":
    sys.exit(main())
