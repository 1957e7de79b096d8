"""
Command-line interface for the Bitey package manager
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Dict, List, Optional

from .config import load_config
from .errors import BiteyError
from .package_manager import PackageManager

HELP_TEXT = """
❓ Help:

📦 Packages:
- install <package>... - Install packages and their dependencies.
- remove <package> - Remove a package.
- update [<package>...] - Update packages (all installed when none given).
- list - List installed packages.

🌐 Remotes:
- remote-add <url> - Add a remote from URL.
- remote-add ppa:<profile>/<ppa> - Add a PPA.
"""


def prompt_confirm(message: str, names: List[str]) -> bool:
    """Ask a [Y/n] question on the terminal; empty answer means yes"""
    try:
        answer = input(f"❓ {message} [Y/n] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("", "y", "yes")


def print_failures(failures: Dict[str, BiteyError]) -> None:
    for name, error in failures.items():
        print(f"✗ {name} [{error.stage}]: {error}", file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bitey",
        description="The Bitey Package Manager"
    )
    parser.add_argument("--config", type=Path, help="Path to a JSON config file")
    parser.add_argument("--store", type=Path, help="Package store directory")
    parser.add_argument("--remotes", type=Path, help="Remotes directory")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # install command
    install_parser = subparsers.add_parser("install", help="Install packages")
    install_parser.add_argument("packages", nargs="*", help="Package names")
    install_parser.add_argument("--yes", "-y", action="store_true",
                                help="Do not ask for confirmation")
    install_parser.add_argument("--insecure", action="store_true", default=None,
                                help="Skip TLS certificate validation")

    # remove command
    remove_parser = subparsers.add_parser("remove", help="Remove a package")
    remove_parser.add_argument("package", help="Package name")
    remove_parser.add_argument("--yes", "-y", action="store_true",
                               help="Do not ask for confirmation")

    # remote-add command
    remote_parser = subparsers.add_parser("remote-add", help="Add a remote")
    remote_parser.add_argument("remote", help="Remote URL or ppa:<profile>/<ppa>")

    # update command
    update_parser = subparsers.add_parser("update", help="Update packages")
    update_parser.add_argument("packages", nargs="*", help="Package names (default: all)")
    update_parser.add_argument("--insecure", action="store_true", default=None,
                               help="Skip TLS certificate validation")

    subparsers.add_parser("list", help="List installed packages")
    subparsers.add_parser("help", help="Show help")

    return parser


def main(args: Optional[List[str]] = None, pm: Optional[PackageManager] = None) -> int:
    """Main CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(args)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    if args.command in (None, "help"):
        print(HELP_TEXT)
        return 0 if args.command == "help" else 1

    try:
        if pm is None:
            config = load_config(args.config)
            if args.store:
                config = replace(config, store_root=args.store)
            if args.remotes:
                config = replace(config, remotes_root=args.remotes)
            pm = PackageManager(config, confirm=prompt_confirm)

        if args.command == "install":
            if not args.packages:
                print("🐶 Run 'bitey help' for help!")
                return 1
            report = pm.install(args.packages, insecure=args.insecure, assume_yes=args.yes)
            print_failures(report.failures)
            if report.failures and report.installed:
                print(f"Installed: {', '.join(report.installed)}")
            return 0 if report.ok or (report.aborted and not report.failures) else 1

        elif args.command == "remove":
            pm.remove(args.package, assume_yes=args.yes)
            return 0

        elif args.command == "remote-add":
            pm.add_remote(args.remote)
            return 0

        elif args.command == "update":
            report = pm.update(args.packages, insecure=args.insecure)
            print_failures(report.failures)
            return 0 if report.ok else 1

        elif args.command == "list":
            pm.list()
            return 0

        parser.print_help()
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled")
        return 130
    except BiteyError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
