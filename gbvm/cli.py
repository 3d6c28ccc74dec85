"""
Command line interface.

Usage:
    gbvm list [--versions] [--json]              # Installed Go binaries
    gbvm upgrade [--skip-dev] [--json] [NAME...] # Upgrade all or named binaries
    gbvm export [-o FILE]                        # Write a manifest of installed binaries
    gbvm install [--json] FILE                   # Restore binaries from a manifest
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from . import __version__
from .config import Config, load_config
from .errors import ConfigError, GbvmError
from .installer import GoInstaller
from .inventory import scan_artifacts
from .logging_config import get_logger, setup_logging
from .manifest import dumps_manifest, export_manifest, read_manifest, restore_manifest, write_manifest
from .registry import ProxyRegistry
from .upgrade import BatchResult, Echo, upgrade_all, upgrade_named


def _echo(args: argparse.Namespace) -> Echo:
    # stdout carries the JSON report, so progress moves to the log
    if args.json:
        return get_logger().info
    return print


def _report(args: argparse.Namespace, result: BatchResult) -> int:
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    elif result.outcomes:
        get_logger().info(result.summary())
    return 0 if result.ok else 1


def cmd_list(args: argparse.Namespace, config: Config) -> int:
    """List installed Go binaries."""
    artifacts = scan_artifacts(config.bin_dir)
    if args.json:
        print(dumps_manifest(artifacts))
        return 0
    for artifact in artifacts:
        if args.versions:
            print(f"{artifact.name}\t{artifact.version}")
        else:
            print(artifact.name)
    return 0


def cmd_upgrade(args: argparse.Namespace, config: Config) -> int:
    """Upgrade all binaries, or the named ones, to the latest version."""
    registry = ProxyRegistry(config.registry_base, timeout=config.timeout_seconds)
    installer = GoInstaller.from_config(config, verbose=args.verbose)

    if args.names:
        result = upgrade_named(
            config, args.names, registry, installer,
            echo=_echo(args), dry_run=args.dry_run, verbose=args.verbose,
        )
    else:
        result = upgrade_all(
            config, registry, installer,
            skip_dev=args.skip_dev or config.skip_dev,
            echo=_echo(args), dry_run=args.dry_run, verbose=args.verbose,
        )
    return _report(args, result)


def cmd_install(args: argparse.Namespace, config: Config) -> int:
    """Reinstall the binaries recorded in a manifest."""
    if not args.backup_file:
        raise GbvmError("missing backup file")
    records = read_manifest(args.backup_file)
    installer = GoInstaller.from_config(config, verbose=args.verbose)
    result = restore_manifest(
        config, records, installer,
        echo=_echo(args), dry_run=args.dry_run, verbose=args.verbose,
    )
    return _report(args, result)


def cmd_export(args: argparse.Namespace, config: Config) -> int:
    """Write the inventory as a manifest."""
    artifacts = export_manifest(config)
    if args.output and args.output != "-":
        write_manifest(artifacts, args.output)
        get_logger().info(f"Wrote {len(artifacts)} binaries to {args.output}")
    else:
        print(dumps_manifest(artifacts))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gbvm",
        description="A command line tool to manage Go binaries",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Only print warnings and errors")
    parser.add_argument("--log-file", help="Also write a debug log to this file")
    parser.add_argument("--config", help="Path to a gbvm YAML config file")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    list_parser = subparsers.add_parser("list", help="List installed Go binaries")
    list_parser.add_argument("--versions", action="store_true", help="Show versions")
    list_parser.add_argument("--json", action="store_true", help="Print the inventory as JSON")
    list_parser.set_defaults(handler=cmd_list)

    upgrade_parser = subparsers.add_parser("upgrade", help="Upgrade binaries to the latest version")
    upgrade_parser.add_argument("--skip-dev", action="store_true", help="Skip (devel) builds")
    upgrade_parser.add_argument("--dry-run", action="store_true", help="Show upgrades without installing")
    upgrade_parser.add_argument("--json", action="store_true", help="Print a JSON report of the outcomes")
    upgrade_parser.add_argument("names", nargs="*", help="Binaries to upgrade (default: all)")
    upgrade_parser.set_defaults(handler=cmd_upgrade)

    install_parser = subparsers.add_parser(
        "install", aliases=["restore"], help="Install the versions recorded in a backup file",
    )
    install_parser.add_argument("--dry-run", action="store_true", help="Show installs without running them")
    install_parser.add_argument("--json", action="store_true", help="Print a JSON report of the outcomes")
    install_parser.add_argument("backup_file", nargs="?", help="Manifest written by 'gbvm export'")
    install_parser.set_defaults(handler=cmd_install)

    export_parser = subparsers.add_parser("export", help="Write a backup file of installed binaries")
    export_parser.add_argument("-o", "--output", help="Output file (default: stdout)")
    export_parser.set_defaults(handler=cmd_export)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    try:
        config = load_config(args.config, verbose=args.verbose)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    try:
        return args.handler(args, config)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except (GbvmError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
