"""
Playbook CLI entrypoint for pushbook-playbook.

Usage:
    pushbook-playbook --version
    pushbook-playbook --help
    pushbook-playbook -c hosts.yml playbook.yml
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from pushbook.cli import add_inventory_arguments, configure_logging, get_version_string
from pushbook.config import RunConfig
from pushbook.engine.errors import ExitCode, LoadError


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for pushbook-playbook."""
    parser = argparse.ArgumentParser(
        prog="pushbook-playbook",
        description="Run a playbook against the hosts of an inventory over SSH",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pushbook-playbook -c hosts.yml site.yml
  pushbook-playbook -s ./discover.sh deploy.yml -t deploy,config
  pushbook-playbook -c hosts.yml site.yml -f 10 --fail-fast -v
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=get_version_string("pushbook-playbook"),
    )

    parser.add_argument(
        "playbook",
        nargs="?",
        default=None,
        help="Playbook file to run",
    )

    add_inventory_arguments(parser)

    parser.add_argument(
        "-t", "--tags",
        dest="tags",
        default=None,
        help="Only run tasks tagged with these values (comma-separated)",
    )

    parser.add_argument(
        "-f", "--forks",
        dest="forks",
        type=int,
        default=None,
        help="Maximum number of hosts worked on at once (default: no limit)",
    )

    parser.add_argument(
        "--fail-fast",
        dest="fail_fast",
        action="store_true",
        default=None,
        help="Stop after the first playbook level in which a host failed",
    )

    parser.add_argument(
        "--task-timeout",
        dest="task_timeout",
        type=float,
        default=None,
        help="Seconds allowed for a single task",
    )

    parser.add_argument(
        "--config",
        dest="config",
        default=None,
        help="YAML file with run settings",
    )

    parser.add_argument(
        "--json",
        action="store_true",
        default=None,
        help="Output results in JSON format",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity (-v, -vv)",
    )

    return parser


def parse_tags(value: Optional[str]) -> Optional[List[str]]:
    """Split a comma-separated tag list; None means no tag filter."""
    if value is None:
        return None
    return [tag.strip() for tag in value.split(',') if tag.strip()]


def build_config(parsed: argparse.Namespace) -> RunConfig:
    """Run settings from --config, overridden by explicit command line options."""
    config = RunConfig.from_file(parsed.config) if parsed.config else RunConfig()

    if parsed.forks is not None:
        if parsed.forks < 1:
            raise LoadError(f"--forks must be at least 1, got {parsed.forks}")
        config.forks = parsed.forks
    if parsed.fail_fast is not None:
        config.fail_fast = parsed.fail_fast
    if parsed.task_timeout is not None:
        config.task_timeout = parsed.task_timeout
    if parsed.json is not None:
        config.json_output = parsed.json
    return config


def main(args: Optional[List[str]] = None) -> int:
    """Main entrypoint for pushbook-playbook CLI."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    # If no playbook provided, show help
    if not parsed.playbook:
        parser.print_help()
        return ExitCode.SUCCESS

    if not parsed.host_config and not parsed.host_script:
        print("ERROR: an inventory is required (-c/--host-config or -s/--host-script)", file=sys.stderr)
        return ExitCode.LOAD_ERROR

    configure_logging(parsed.verbose)

    try:
        config = build_config(parsed)
    except LoadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return e.exit_code

    from pushbook.engine.runner import PlaybookRunner

    runner = PlaybookRunner(
        playbook_path=Path(parsed.playbook),
        host_config=parsed.host_config,
        host_script=parsed.host_script,
        tags=parse_tags(parsed.tags),
        config=config,
    )

    return runner.run()


if __name__ == "__main__":
    sys.exit(main())
