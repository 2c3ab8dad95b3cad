#!/usr/bin/env python3
"""
blockflow - Automation Block Graph Engine

Command line entry point. Loads an automation from a YAML/JSON document or a
built-in template, validates it, simulates it with fictitious data, and
saves it to the automation database with version history.
"""

import asyncio
import logging
import sys
import argparse
from typing import List, Optional

from blockflow.catalog import block_catalog, template_library, validate_config
from blockflow.config import config
from blockflow.database import DatabaseManager
from blockflow.engine import EditorSession, ExecutionSimulator, StructuralValidator
from blockflow.importers import BaseImporter, FileImporter, TemplateImporter
from blockflow.models import BlockStatus, SimulationTrace
from blockflow.versioning import VersionManager


STATUS_ICONS = {
    BlockStatus.SUCCESS: "✅",
    BlockStatus.ERROR: "❌",
    BlockStatus.PENDING: "⏳",
}


def setup_logging():
    """Configure logging for the application."""
    level = getattr(logging, config.get("logging.level", "INFO").upper())
    format_str = config.get("logging.format", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    log_file = config.log_filename

    logging.basicConfig(
        level=level,
        format=format_str,
        handlers=[
            logging.StreamHandler(sys.stderr),
            logging.FileHandler(log_file)
        ]
    )


def get_importer(source: Optional[str], template_id: Optional[str]) -> BaseImporter:
    """
    Pick the importer for a command's automation source.

    Args:
        source: Path to an automation document
        template_id: Id of a built-in template

    Returns:
        The importer to load the automation with
    """
    if template_id:
        return TemplateImporter(template_id)
    if not source:
        raise ValueError("Provide an automation file or --template")
    return FileImporter(source)


def build_session(importer: BaseImporter, database: Optional[DatabaseManager] = None,
                  step_delay: float = 0.0) -> EditorSession:
    """
    Create an editor session holding an imported automation.
    """
    simulator = ExecutionSimulator(catalog=block_catalog, step_delay=step_delay)
    session = EditorSession(
        name=importer.get_name(),
        catalog=block_catalog,
        simulator=simulator,
        persistence=database
    )
    session.store.replace_all(importer.get_blocks())
    return session


def collect_warnings(session: EditorSession) -> List[str]:
    """
    Non-blocking findings: per-block settings problems and blocks no trigger reaches.
    """
    warnings = []
    for block in session.blocks:
        if not block.configured:
            continue
        results = validate_config(block.kind, block.config)
        for message in results['errors'] + results['warnings']:
            warnings.append(f"{block.id} ({block.kind.value}): {message}")

    for block in StructuralValidator().unreachable_blocks(session.blocks):
        warnings.append(f"{block.id} ({block.kind.value}): not reachable from any trigger")
    return warnings


def format_trace(trace: SimulationTrace, session: EditorSession) -> str:
    """
    Render a test run as text.
    """
    lines = []
    if trace.aborted:
        lines.append("Test not run:")
        lines.extend(f"  - {error}" for error in trace.errors)
        return "\n".join(lines)

    for outcome in trace.results:
        block = session.store.get_block(outcome.block_id)
        definition = block_catalog.get_block(block.kind) if block else None
        name = definition.name if definition else outcome.block_id
        lines.append(f"{STATUS_ICONS[outcome.status]} {name} [{outcome.block_id}]: {outcome.message}")

    if trace.summary:
        lines.append("")
        lines.append(trace.summary.message)
        lines.extend(f"  {detail}" for detail in trace.summary.details)
    return "\n".join(lines)


def run_validate(args) -> int:
    session = build_session(get_importer(args.source, args.template))
    result = session.validate()

    if result.valid:
        print(f"✅ '{session.name}' is valid ({len(session.blocks)} blocks)")
    else:
        print(f"❌ '{session.name}' cannot be saved yet:")
        for error in result.errors:
            print(f"  - {error}")

    for warning in collect_warnings(session):
        print(f"  ⚠️  {warning}")
    return 0 if result.valid else 1


def run_test(args) -> int:
    session = build_session(get_importer(args.source, args.template), step_delay=args.delay)
    trace = asyncio.run(session.test())
    print(format_trace(trace, session))
    return 0 if trace.summary and trace.summary.success else 1


def run_save(args) -> int:
    with DatabaseManager(args.database) as db:
        db.initialize_database()
        session = build_session(get_importer(args.source, args.template), database=db)
        session.automation_id = args.automation_id
        result = session.save(description=args.description)

    if not result.saved:
        print(f"❌ '{session.name}' was not saved:")
        for error in result.errors:
            print(f"  - {error}")
        return 1

    print(f"✅ Saved '{session.name}' as {result.automation_id} (version {result.version})")
    return 0


def run_history(args) -> int:
    with DatabaseManager(args.database) as db:
        db.initialize_database()
        version_manager = VersionManager(db)
        history = version_manager.get_version_history(args.automation_id, limit=args.limit)

    if not history:
        print(f"No saved versions for {args.automation_id}")
        return 1

    for entry in history:
        marker = "*" if entry['is_current'] else " "
        print(f"{marker} v{entry['version']}  {entry['short_hash']}  {entry['date']}  "
              f"{entry['blocks']} blocks  {entry['description']}")
    return 0


def run_restore(args) -> int:
    with DatabaseManager(args.database) as db:
        db.initialize_database()
        restored = VersionManager(db).restore_version(args.automation_id, args.version)

    if not restored:
        print(f"❌ Version {args.version} of {args.automation_id} not found")
        return 1

    print(f"✅ Restored version {args.version}; current version is now {restored.version}")
    return 0


def show_catalog(args) -> int:
    for category, definitions in block_catalog.palette().items():
        print(f"{category}:")
        for definition in definitions:
            print(f"  {definition.kind.value:<18} {definition.name} - {definition.description}")
    return 0


def show_templates(args) -> int:
    for template in template_library.list_templates():
        print(f"{template.template_id:<20} {template.name} ({len(template.blocks)} blocks)")
        print(f"{'':<20} {template.description}")
    return 0


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="blockflow - Automation Block Graph Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py catalog                              # List available block kinds
  python main.py validate flow.yaml                   # Check an automation before saving
  python main.py test --template lead-welcome         # Simulate a built-in template
  python main.py save flow.yaml --description "v1"    # Save with version history
  python main.py history 2b1e...                      # Show saved versions
        """
    )

    parser.add_argument(
        "--version",
        action="version",
        version="blockflow 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    catalog_parser = subparsers.add_parser("catalog", help="List available block kinds")
    catalog_parser.set_defaults(handler=show_catalog)

    templates_parser = subparsers.add_parser("templates", help="List built-in templates")
    templates_parser.set_defaults(handler=show_templates)

    for name, handler, help_text in (
        ("validate", run_validate, "Validate an automation"),
        ("test", run_test, "Simulate an automation with fictitious data"),
        ("save", run_save, "Validate and save an automation"),
    ):
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument("source", nargs="?", help="Automation document (.yaml, .yml or .json)")
        command_parser.add_argument("--template", help="Use a built-in template instead of a file")
        command_parser.set_defaults(handler=handler)

        if name == "test":
            command_parser.add_argument(
                "--delay",
                type=float,
                default=config.step_delay,
                help="Seconds each block stays pending (default: from config)"
            )
        if name == "save":
            command_parser.add_argument("--automation-id", help="Add a version to an existing automation")
            command_parser.add_argument("--description", help="Note stored with the version")

    history_parser = subparsers.add_parser("history", help="Show an automation's saved versions")
    history_parser.add_argument("automation_id")
    history_parser.add_argument("--limit", type=int, default=10)
    history_parser.set_defaults(handler=run_history)

    restore_parser = subparsers.add_parser("restore", help="Make an older version current again")
    restore_parser.add_argument("automation_id")
    restore_parser.add_argument("version", type=int)
    restore_parser.set_defaults(handler=run_restore)

    for command_parser in (subparsers.choices["save"], history_parser, restore_parser):
        command_parser.add_argument(
            "--database",
            default=config.database_filename,
            help="DuckDB file holding saved automations (default: from config)"
        )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    setup_logging()

    logging.info(f"blockflow: {args.command}")

    try:
        return args.handler(args)
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        print("\nInterrupted.")
        return 130
    except (OSError, ValueError) as e:
        logging.error(f"{args.command} failed: {e}")
        print(f"\n{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
