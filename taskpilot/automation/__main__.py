"""
TaskPilot Automation - Main Entry Point

Usage:
    python -m automation --help
    python -m automation validate Projects/Automation
    python -m automation rules --folder Projects/Automation
    python -m automation dispatch item_created --context '{"task": {"priority": "high"}}'
    python -m automation run --config taskpilot.yaml
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .collaborators import LoggingNotificationSink, MemoryDocumentStore, MemoryItemRegistry
from .config import AutomationSettings, load_settings
from .engine import AutomationEngine
from .errors import ConfigurationError
from .logging_setup import setup_logging
from .rules.loader import load_rules_from_directory, load_rules_from_file


def _settings(args: argparse.Namespace) -> AutomationSettings:
    if args.config:
        settings = load_settings(args.config)
    else:
        settings = AutomationSettings.from_env()
    if getattr(args, "folder", None):
        settings.automation_folder = args.folder
    return settings


def _build_engine(settings: AutomationSettings) -> AutomationEngine:
    return AutomationEngine(
        settings=settings,
        notifications=LoggingNotificationSink(),
        documents=MemoryDocumentStore(),
        items=MemoryItemRegistry()
    )


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate rule files, printing one line per problem"""
    path = Path(args.path)
    report = load_rules_from_directory(str(path)) if path.is_dir() else load_rules_from_file(str(path))
    for rule in report.rules:
        print(f"OK     {rule.id} ({rule.trigger.type.value}, {len(rule.conditions)} condition(s), {len(rule.actions)} action(s))")
    for error in report.errors:
        print(f"ERROR  {error.message} [{error.context.get('source', '')}]")
    return 1 if report.errors else 0


async def cmd_rules(args: argparse.Namespace) -> int:
    """List default and loaded rules"""
    engine = _build_engine(_settings(args))
    await engine.initialize(start_scheduler=False)
    for rule in engine.list_rules():
        state = "enabled" if rule.enabled else "disabled"
        print(f"{rule.id:<32} {rule.trigger.type.value:<18} {state:<9} {rule.name}")
    return 0


async def cmd_dispatch(args: argparse.Namespace) -> int:
    """Dispatch one trigger and print the result as JSON"""
    try:
        context = json.loads(args.context) if args.context else {}
    except ValueError as e:
        print(f"Error: invalid --context JSON: {e}")
        return 2

    engine = _build_engine(_settings(args))
    await engine.initialize(start_scheduler=False)
    result = await engine.dispatch(args.trigger, context)
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0


async def cmd_run(args: argparse.Namespace) -> int:
    """Run the engine with its daily scheduler until interrupted"""
    engine = _build_engine(_settings(args))
    await engine.initialize()
    try:
        while True:
            await asyncio.sleep(3600)
    finally:
        await engine.shutdown()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the automation engine"""
    parser = argparse.ArgumentParser(
        description="TaskPilot automation rule engine"
    )
    parser.add_argument("--config", help="Settings file (YAML or JSON)")
    parser.add_argument("--log-level", default="INFO",
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help="Log level (default: INFO)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    validate_parser = subparsers.add_parser("validate", help="Validate rule files")
    validate_parser.add_argument("path", help="Rule file or folder")

    rules_parser = subparsers.add_parser("rules", help="List rules")
    rules_parser.add_argument("--folder", help="Rule folder (default from settings)")

    dispatch_parser = subparsers.add_parser("dispatch", help="Dispatch a single trigger")
    dispatch_parser.add_argument("trigger", help="Trigger type, e.g. item_created")
    dispatch_parser.add_argument("--context", help="Event context as JSON")
    dispatch_parser.add_argument("--folder", help="Rule folder (default from settings)")

    run_parser = subparsers.add_parser("run", help="Run the engine and daily scheduler")
    run_parser.add_argument("--folder", help="Rule folder (default from settings)")

    subparsers.add_parser("version", help="Show version")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "validate":
            return cmd_validate(args)
        elif args.command == "rules":
            return asyncio.run(cmd_rules(args))
        elif args.command == "dispatch":
            return asyncio.run(cmd_dispatch(args))
        elif args.command == "run":
            return asyncio.run(cmd_run(args))
        elif args.command == "version":
            print(f"TaskPilot Automation v{__version__}")
            return 0
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 2
    except KeyboardInterrupt:
        print("\nShutting down...")
        return 0

    return 0


if __name__ == "__main__":
    sys.exit(main())
