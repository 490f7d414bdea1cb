#!/usr/bin/env python3
"""
WizNote Exporter - Main CLI Entry Point

Exports the notes of a WizNote desktop account (.ziw archives indexed by
index.db) to plain text, Markdown, source code or HTML files, keeping the
folder structure, embedded images and attachments.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List

import yaml

from config_loader import ConfigLoader, get_nested
from exceptions import IndexUnavailableError
from exporters import export_account
from index import INDEX_FILE_NAME
from logger import setup_logging, log_section, log_config
from models import ExportSummary

__version__ = "1.0.0"


def create_argument_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for CLI."""
    parser = argparse.ArgumentParser(
        description="Export WizNote notes to text, Markdown, source code or HTML files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List accounts found in the default data directory
  wizexport --list-accounts

  # Export one account
  wizexport --account me@example.com --output-dir ~/notes

  # Export an account directory explicitly, with debug logging
  wizexport --account-dir "/data/My Knowledge/Data/me@example.com" --output-dir out -vv
        """
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    parser.add_argument(
        '--config',
        type=str,
        default='config.yaml',
        help='Path to configuration YAML file (default: config.yaml, optional)'
    )

    parser.add_argument(
        '--data-dir',
        type=str,
        help='WizNote data directory holding one folder per account '
             '(default: ~/Documents/My Knowledge/Data)'
    )

    account_group = parser.add_mutually_exclusive_group()
    account_group.add_argument(
        '--account',
        type=str,
        help='Account folder name inside the data directory'
    )
    account_group.add_argument(
        '--account-dir',
        type=str,
        help='Full path of the account directory (contains index.db)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        help='Directory receiving the exported files'
    )

    parser.add_argument(
        '--list-accounts',
        action='store_true',
        help='List accounts found in the data directory and exit'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        help='Also write logs to this file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (-v for INFO, -vv for DEBUG)'
    )

    return parser


def discover_accounts(data_dir: str) -> List[str]:
    """Names of the account folders under ``data_dir`` that hold an index."""
    if not os.path.isdir(data_dir):
        return []
    return sorted(
        entry.name for entry in os.scandir(data_dir)
        if entry.is_dir() and os.path.isfile(os.path.join(entry.path, INDEX_FILE_NAME))
    )


def run_export(config: dict, logger: logging.Logger) -> int:
    """Execute the export of one account."""
    account_dir = Path(get_nested(config, 'wiznote.account_directory'))
    output_dir = Path(get_nested(config, 'export.output_directory'))

    log_section("Exporting notes")
    logger.info(f"Account: {account_dir}")
    logger.info(f"Output: {output_dir}")

    try:
        summary = export_account(account_dir, output_dir, config=config, logger=logger)
    except IndexUnavailableError as e:
        logger.error(f"Cannot read account index: {e}")
        return 1
    except KeyboardInterrupt:
        logger.error("Export interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Export failed: {str(e)}", exc_info=True)
        return 1

    print("\n" + format_summary(summary))

    if summary.failed > 0:
        logger.warning(f"Export completed with {summary.failed} failed document(s)")
    else:
        logger.info("Export completed successfully")
    return 0


def format_summary(summary: ExportSummary) -> str:
    """Render the batch summary for the console."""
    stats = summary.get_statistics()
    lines = [
        "=" * 60,
        "EXPORT SUMMARY",
        "=" * 60,
        f"{stats['processed']} files processed in {stats['elapsed_seconds']:.2f} seconds",
        f"  Exported:                 {stats['exported']}",
        f"  Unchanged:                {stats['unchanged']}",
        f"  Skipped (modified):       {stats['skipped_modified']}",
        f"  Attachments as documents: {stats['attachments_as_documents']}",
        f"  Failed:                   {stats['failed']}",
        f"  Not downloaded:           {stats['not_downloaded']}",
        f"  Missing attachments:      {stats['attachment_mismatches']}",
        "=" * 60,
    ]
    return "\n".join(lines)


def main(argv=None) -> int:
    """Main entry point for the CLI."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    try:
        logger = setup_logging(verbosity=args.verbose)

        log_section("WizNote Exporter")
        logger.info(f"Version: {__version__}")

        logger.info(f"Loading configuration from {args.config}")
        config = ConfigLoader.load(args.config, required=False)

        # CLI takes precedence
        config = ConfigLoader.merge_with_args(config, args)

        if args.list_accounts:
            data_dir = get_nested(config, 'wiznote.data_directory')
            accounts = discover_accounts(data_dir)
            if not accounts:
                print(f"No WizNote accounts found in {data_dir}")
            for account in accounts:
                print(account)
            return 0

        if not get_nested(config, 'wiznote.account_directory'):
            accounts = discover_accounts(get_nested(config, 'wiznote.data_directory'))
            if len(accounts) == 1:
                config['wiznote']['account_directory'] = os.path.join(
                    config['wiznote']['data_directory'], accounts[0]
                )
                logger.info(f"Using the only account found: {accounts[0]}")

        ConfigLoader.validate(config)

        logger = setup_logging(
            verbosity=args.verbose,
            log_file=get_nested(config, 'logging.file'),
            level=get_nested(config, 'logging.level')
        )

        log_config(config)

        return run_export(config, logger)

    except FileNotFoundError as e:
        print(f"ERROR: File not found: {e}", file=sys.stderr)
        return 2
    except (ValueError, yaml.YAMLError) as e:
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nExport interrupted by user", file=sys.stderr)
        return 130
    except Exception as e:
        print(f"ERROR: Unexpected error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
