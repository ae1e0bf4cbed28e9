"""
Inventory CLI entrypoint for pushbook-inventory.

Usage:
    pushbook-inventory -c hosts.yml --list
    pushbook-inventory -s ./discover.sh --host web1
"""

import argparse
import json
import sys
from typing import List, Optional

import yaml

from pushbook.cli import add_inventory_arguments, configure_logging, get_version_string
from pushbook.engine.errors import ExitCode, LoadError
from pushbook.engine.inventory import HostInventory


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for pushbook-inventory."""
    parser = argparse.ArgumentParser(
        prog="pushbook-inventory",
        description="Validate an inventory and show the hosts it resolves to",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pushbook-inventory -c hosts.yml --list
  pushbook-inventory -s ./discover.sh --host web1 -y
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=get_version_string("pushbook-inventory"),
    )

    add_inventory_arguments(parser)

    parser.add_argument(
        "--list",
        action="store_true",
        dest="list_hosts",
        help="Output the whole inventory",
    )

    parser.add_argument(
        "--host",
        dest="host",
        default=None,
        help="Output one host with its effective credentials",
    )

    parser.add_argument(
        "-y", "--yaml",
        action="store_true",
        help="Output in YAML format",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase verbosity",
    )

    return parser


def _dump(data: dict, as_yaml: bool) -> str:
    if as_yaml:
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False).rstrip()
    return json.dumps(data, indent=2)


def main(args: Optional[List[str]] = None) -> int:
    """Main entrypoint for pushbook-inventory CLI."""
    parser = create_parser()
    parsed = parser.parse_args(args)

    # If no action specified, show help
    if not parsed.list_hosts and not parsed.host:
        parser.print_help()
        return ExitCode.SUCCESS

    configure_logging(parsed.verbose)

    try:
        if parsed.host_config:
            inventory = HostInventory.from_file(parsed.host_config)
        elif parsed.host_script:
            inventory = HostInventory.from_script(parsed.host_script)
        else:
            raise LoadError("an inventory is required (-c/--host-config or -s/--host-script)")
    except LoadError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return e.exit_code

    if parsed.host:
        host = inventory.get_host(parsed.host)
        if host is None:
            print(f"ERROR: host not in inventory: {parsed.host}", file=sys.stderr)
            return ExitCode.GENERIC_ERROR
        user, key = host.credentials(inventory.global_config)
        print(_dump({
            "address": host.address,
            "user": user,
            "key": key,
            "connection": host.connection,
        }, parsed.yaml))
        return ExitCode.SUCCESS

    print(_dump(inventory.to_dict(), parsed.yaml))
    return ExitCode.SUCCESS


if __name__ == "__main__":
    sys.exit(main())
