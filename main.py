#!/usr/bin/env python3
"""
Notewright - Incremental importer for Claude data exports

Main entry point. Loads an export, previews the update plan against the
vault and, unless this is a dry run, writes the new and updated notes.
"""

import argparse
import logging
import sys
from typing import List, Optional

from notewright import __version__
from notewright.config import ConfigManager
from notewright.exceptions import NotewrightError
from notewright.importers import BaseImporter, ClaudeExportImporter, MockImporter
from notewright.models import ImportOptions
from notewright.pipeline import ImportPipeline, format_run_report
from notewright.vault import format_plan_summary


def setup_logging(config: ConfigManager, debug: bool = False):
    """Configure logging for the application."""
    level = logging.DEBUG if debug else getattr(logging, config.log_level, logging.INFO)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if config.log_filename:
        handlers.append(logging.FileHandler(config.log_filename))

    logging.basicConfig(
        level=level,
        format=config.log_format,
        handlers=handlers,
        force=True,
    )


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Notewright - Incremental importer for Claude data exports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py -i data-2025-08-05.zip -o ~/vault                  # Import or update a vault
  python main.py -i export/ -o ~/vault --dry-run                    # Preview what would change
  python main.py -i export/ -o ~/vault -t ai,claude -l "AI Tools"   # Tag and link every note
  python main.py -i export/ -o ~/vault --force-full                 # Re-render everything
        """
    )

    parser.add_argument("-i", "--input", type=str,
                        help="Export folder or .zip/.dms archive (required unless --importer mock)")
    parser.add_argument("-o", "--output-dir", type=str,
                        help="Vault directory (default: paths.output_dir from the config)")
    parser.add_argument("-t", "--tags", type=str,
                        help="Comma-separated tags added to every note")
    parser.add_argument("-l", "--links", type=str,
                        help="Comma-separated wiki links added to every note")

    parser.add_argument("--incremental", dest="incremental", action="store_true", default=None,
                        help="Update the existing vault in place (default)")
    parser.add_argument("--no-incremental", dest="incremental", action="store_false",
                        help="Do not scan the existing vault")
    parser.add_argument("-f", "--force-full", action="store_true",
                        help="Ignore existing notes and render everything fresh")

    parser.add_argument("-n", "--dry-run", action="store_true",
                        help="Show the update plan without writing anything")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Log progress for every conversation and project")
    parser.add_argument("--debug", action="store_true",
                        help="Enable debug logging")
    parser.add_argument("-c", "--config", type=str, default="config.yaml",
                        help="Configuration file (default: config.yaml)")
    parser.add_argument("--importer", choices=["claude", "mock"], default="claude",
                        help="Data importer to use (default: claude)")
    parser.add_argument("--version", action="version", version=f"Notewright {__version__}")

    args = parser.parse_args(argv)

    if args.incremental and args.force_full:
        parser.error("--incremental and --force-full cannot be used together")
    if args.importer == "claude" and not args.input:
        parser.error("--input is required for the claude importer")

    return args


def build_options(args, config: ConfigManager) -> ImportOptions:
    """Merge command line arguments over configuration values."""
    incremental = config.incremental if args.incremental is None else args.incremental
    return ImportOptions(
        dry_run=args.dry_run,
        verbose=args.verbose,
        debug=args.debug,
        force_full=args.force_full,
        incremental=incremental,
        tags=args.tags if args.tags is not None else config.default_tags,
        links=args.links if args.links is not None else config.default_links,
    )


def create_importer(args) -> BaseImporter:
    if args.importer == "mock":
        return MockImporter()
    return ClaudeExportImporter(args.input)


def run(args, config: ConfigManager) -> int:
    """
    Run one import.

    Returns:
        Process exit status
    """
    options = build_options(args, config)
    output_dir = args.output_dir or config.output_dir
    logging.info(f"Notewright {__version__}: importing into {output_dir}")

    with create_importer(args) as importer:
        conversations = importer.get_conversations()
        projects = importer.get_projects()
        errors = getattr(importer, "validation_errors", [])

    if errors:
        logging.warning(f"{len(errors)} records failed validation and were skipped")

    pipeline = ImportPipeline(output_dir, options)
    index = pipeline.scan()
    plan = pipeline.plan(index, conversations, projects)
    logging.info(format_plan_summary(plan.summary))

    report = pipeline.execute(plan)
    logging.info(format_run_report(report))

    if options.dry_run:
        logging.info("Dry run: no files were written")

    return 0 if report.success else 1


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = parse_arguments(argv)
    config = ConfigManager(args.config)
    setup_logging(config, args.debug)

    try:
        status = run(args, config)
    except KeyboardInterrupt:
        logging.info("Import interrupted by user")
        status = 1
    except NotewrightError as e:
        logging.error(f"Import failed: {e}")
        status = 1
    except Exception as e:
        logging.exception(f"Unexpected error: {e}")
        status = 1

    sys.exit(status)


if __name__ == "__main__":
    main()
