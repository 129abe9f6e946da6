#!/usr/bin/env python3
"""
FileStore Backend - Command Line Interface

Operator front end for the storage layer:
- Save a local file into a storage directory
- Delete by exact name or by stem prefix
- Inspect extension / stem of a filename

@.architecture
Incoming: Command line, config/settings.py --- {CLI args, Settings defaults}
Processing: main(), cmd_save(), cmd_delete(), cmd_ext(), cmd_stem() --- {3 jobs: argument_parsing, dispatch, reporting}
Outgoing: data/storage/local.py, stdout --- {save_stream/delete_file calls, status report, exit code}
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from config.settings import Settings, get_settings  # noqa: E402
from data.storage import (  # noqa: E402
    StorageStatus,
    delete_file,
    extract_extension,
    save_stream,
    strip_extension,
)
from monitoring import configure_from_preset, get_registry  # noqa: E402


# =============================================================================
# Terminal Colors
# =============================================================================

class Colors:
    """ANSI color codes."""
    RED = '\033[0;31m'
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    RESET = '\033[0m'


def log_success(message: str) -> None:
    print(f"{Colors.GREEN}[✓]{Colors.RESET} {message}")


def log_warn(message: str) -> None:
    print(f"{Colors.YELLOW}[⚠]{Colors.RESET} {message}")


def log_error(message: str) -> None:
    print(f"{Colors.RED}[✗]{Colors.RESET} {message}")


def report(status: StorageStatus, subject: str) -> int:
    """Print the outcome and return the process exit code."""
    if status.is_success:
        log_success(f"{subject}: {status.value}")
        return 0
    if status in (StorageStatus.IO_ERROR, StorageStatus.UNKNOWN_ERROR):
        log_error(f"{subject}: {status.value} (see log for details)")
    else:
        log_warn(f"{subject}: {status.value}")
    return 1


# =============================================================================
# Commands
# =============================================================================

def _choose(flag: Optional[bool], configured: bool) -> bool:
    return configured if flag is None else flag


def cmd_save(args: argparse.Namespace, settings: Settings) -> int:
    source = Path(args.source)
    name = args.name or source.name
    directory = args.dir or str(settings.storage.base_path)

    try:
        stream = open(source, 'rb')
    except OSError as e:
        log_error(f"Cannot open {source}: {e}")
        return 2

    status = save_stream(
        directory,
        _choose(args.create_dir, settings.storage.create_directories),
        name,
        stream,
        _choose(args.overwrite, settings.storage.overwrite_files),
        base_dir=settings.confinement_dir,
    )
    return report(status, f"save {name} -> {directory}")


def cmd_delete(args: argparse.Namespace, settings: Settings) -> int:
    directory = args.dir or str(settings.storage.base_path)
    exact = _choose(args.exact, settings.storage.delete_exact_match)

    status = delete_file(directory, args.name, exact, base_dir=settings.confinement_dir)
    mode = "exact" if exact else "prefix"
    return report(status, f"delete {args.name} ({mode}) in {directory}")


def cmd_ext(args: argparse.Namespace, settings: Settings) -> int:
    print(extract_extension(args.name))
    return 0


def cmd_stem(args: argparse.Namespace, settings: Settings) -> int:
    print(strip_extension(args.name))
    return 0


# =============================================================================
# CLI Interface
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filestore",
        description="FileStore Backend - local file storage operations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Save a file into the configured storage directory
  filestore save ./report.pdf

  # Save under another name, creating the directory if needed
  filestore save ./report.pdf --name q3.pdf --dir ./uploads --create-dir

  # Delete report.pdf, report_v2.txt, ... (stem prefix match)
  filestore delete report.pdf --prefix --dir ./uploads
        """
    )

    parser.add_argument('--log-level', help='Override configured log level')
    parser.add_argument('--json-logs', action='store_true', help='Emit JSON log lines')
    parser.add_argument('--metrics', action='store_true', help='Print operation counters on exit')

    subparsers = parser.add_subparsers(dest='command', required=True)

    save = subparsers.add_parser('save', help='Save a local file into storage')
    save.add_argument('source', help='File to copy')
    save.add_argument('--name', help='Target file name (defaults to source name)')
    save.add_argument('--dir', help='Target directory (defaults to storage.base_path)')
    save.add_argument('--create-dir', action=argparse.BooleanOptionalAction, default=None,
                      help='Create target directory if missing (default: storage.create_directories)')
    save.add_argument('--overwrite', action=argparse.BooleanOptionalAction, default=None,
                      help='Replace an existing file (default: storage.overwrite_files)')
    save.set_defaults(handler=cmd_save)

    delete = subparsers.add_parser('delete', help='Delete files from storage')
    delete.add_argument('name', help='File name (exact) or name whose stem is the prefix')
    delete.add_argument('--dir', help='Target directory (defaults to storage.base_path)')
    mode = delete.add_mutually_exclusive_group()
    mode.add_argument('--exact', dest='exact', action='store_true', default=None,
                      help='Delete only the exact file name')
    mode.add_argument('--prefix', dest='exact', action='store_false', default=None,
                      help='Delete every entry starting with the stem')
    delete.set_defaults(handler=cmd_delete)

    ext = subparsers.add_parser('ext', help='Print the lower-cased extension of a name')
    ext.add_argument('name')
    ext.set_defaults(handler=cmd_ext)

    stem = subparsers.add_parser('stem', help='Print a name without its extension')
    stem.add_argument('name')
    stem.set_defaults(handler=cmd_stem)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)
    settings = get_settings()

    overrides = settings.monitoring.logging_overrides()
    if args.log_level:
        overrides['level'] = args.log_level
    if args.json_logs:
        overrides['format_type'] = 'json'
    configure_from_preset(settings.environment, **overrides)

    exit_code = args.handler(args, settings)

    if args.metrics:
        print(get_registry().render_prometheus(), end='')

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
