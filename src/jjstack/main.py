"""Main entry point for jjstack."""

import sys
from argparse import ArgumentParser

import argcomplete  # type: ignore

from jjstack.commands.stack import cmd_plan, cmd_status, cmd_sync
from jjstack.git.real import RealGit
from jjstack.jj.real import JujutsuBackend
from jjstack.pr.github import GitHubForge
from jjstack.stack.engine import SyncEngine
from jjstack.utils.config import JjStackConfig, get_config
from jjstack.utils.errors import JjStackError
from jjstack.utils.logging import ExitException, error, setup_logging
from jjstack.utils.types import LOGLEVELS


def make_engine(config: JjStackConfig) -> SyncEngine:
    """Wire the real backends together."""
    timeout = config.command_timeout
    return SyncEngine(
        JujutsuBackend(timeout=timeout),
        RealGit(remote=config.remote_name, timeout=timeout),
        GitHubForge(timeout=timeout),
        config,
    )


def make_parser() -> ArgumentParser:
    parser = ArgumentParser(description="Sync Jujutsu changes as stacked GitHub PRs")
    parser.add_argument(
        "--log-level", default="info", choices=LOGLEVELS.keys(),
        help="Set the log level",
    )
    parser.add_argument(
        "--color", default="auto", choices=["always", "auto", "never"],
        help="Colorize output and error",
    )
    parser.add_argument(
        "--revision", "-r", default=None,
        help="Top of the stack (defaults to the working copy change)",
    )

    subparsers = parser.add_subparsers(required=True, dest="command")

    status_parser = subparsers.add_parser("status", aliases=["st"], help="Sync status of the current stack")
    status_parser.set_defaults(func=cmd_status)

    plan_parser = subparsers.add_parser("plan", help="Show what sync would do")
    plan_parser.set_defaults(func=cmd_plan)

    sync_parser = subparsers.add_parser("sync", help="Push the stack and create or update PRs")
    sync_parser.add_argument("--force", "-f", action="store_true", help="Bypass confirmation")
    sync_parser.add_argument("--once", action="store_true", help="Apply a single pass instead of looping until synced")
    sync_parser.set_defaults(func=cmd_sync)
    return parser


def main():
    """Main entry point for jjstack."""
    setup_logging()
    try:
        parser = make_parser()
        argcomplete.autocomplete(parser)
        args = parser.parse_args()
        setup_logging(LOGLEVELS[args.log_level], args.color)

        engine = make_engine(get_config())
        stack = engine.resolve(args.revision)
        args.func(engine, stack, args)
    except ExitException as e:
        error("{}", e.args[0])
        sys.exit(1)
    except JjStackError as e:
        error("{}", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
