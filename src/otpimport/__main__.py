# src/otpimport/__main__.py

import sys
import argparse
import logging

from rich.console import Console
from rich.logging import RichHandler

from otpimport.importers import cli as import_cli


def _configure_logging(verbose: bool):
    # 诊断信息走 stderr，由 rich 渲染
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main():
    # 1. Initialize the primary ArgumentParser
    parser = argparse.ArgumentParser(
        prog="otpimport",
        description="Normalize authenticator exports into canonical otpauth:// credentials.",
        epilog="Use 'otpimport <command> --help' for more information on a specific command."
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show every skipped entry and detection step.")

    # 2. Define subparsers for the available commands
    subparsers = parser.add_subparsers(
        title="Available Commands",
        dest="command",
        required=True,
        metavar="<command>"
    )
    subparsers.add_parser(
        "import",
        help="Import HTML / CSV / JSON exports and export canonical records.",
    )
    subparsers.add_parser(
        "detect",
        help="Report the detected export dialect of each file.",
    )

    # Only the first arguments select the command; the rest belong to the command's own parser.
    argv = sys.argv[1:]
    verbose = False
    while argv and argv[0] in ("-v", "--verbose"):
        verbose = True
        argv = argv[1:]
    args = parser.parse_args(argv[:1])
    sys.argv = [sys.argv[0]] + argv
    _configure_logging(verbose)

    if args.command == "import":
        import_cli.main()
    elif args.command == "detect":
        import_cli.detect_main()
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
