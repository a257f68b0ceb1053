"""
Main CLI entry point for pacdb

Commands:
- pacdb list <db> / pacdb l <db>       names and versions of every package
- pacdb info <db> <pkg> / pacdb show   one package in detail
- pacdb dump <db>                      every package in detail
"""

import argparse
import logging
import sys

from .. import __version__
from ..core.config import DatabaseConfig, load_config
from ..core.desc import UnknownKeyPolicy
from ..core.errors import PacdbError

# User config file, read when --config is not given
DEFAULT_CONFIG_FILE = '/etc/pacdb.conf'


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with all commands and aliases."""

    parser = argparse.ArgumentParser(
        prog='pacdb',
        description='Read packages from pacman sync databases',
        epilog='Use "pacdb <command> --help" for command-specific help.'
    )

    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'pacdb {__version__}'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Verbose output'
    )
    parser.add_argument(
        '--nocolor',
        action='store_true',
        help='Disable colored output'
    )
    parser.add_argument(
        '--config',
        metavar='FILE',
        default=DEFAULT_CONFIG_FILE,
        help=f'Config file (default: {DEFAULT_CONFIG_FILE})'
    )
    parser.add_argument(
        '--dbpath', '-b',
        metavar='DIR',
        help='Base directory of the databases (default: /var/lib/pacman)'
    )
    parser.add_argument(
        '--ignore-unknown',
        action='store_true',
        help='Skip unrecognized desc keys instead of rejecting the package'
    )

    # Parent parser for display options (inherited by subparsers)
    display_parent = argparse.ArgumentParser(add_help=False)
    display_parent.add_argument(
        '--json',
        action='store_true',
        help='JSON output for scripting'
    )

    subparsers = parser.add_subparsers(
        dest='command',
        title='commands',
        metavar='<command>'
    )

    list_parser = subparsers.add_parser(
        'list', aliases=['l'],
        help='List packages of a database',
        parents=[display_parent]
    )
    list_parser.add_argument('database', help='Database name (e.g. core)')

    info_parser = subparsers.add_parser(
        'info', aliases=['show'],
        help='Show details of a package',
        parents=[display_parent]
    )
    info_parser.add_argument('database', help='Database name (e.g. core)')
    info_parser.add_argument('package', help='Package name')

    dump_parser = subparsers.add_parser(
        'dump',
        help='Show details of every package of a database',
        parents=[display_parent]
    )
    dump_parser.add_argument('database', help='Database name (e.g. core)')
    dump_parser.add_argument(
        '--strict',
        action='store_true',
        help='Exit with an error if any package fails to parse'
    )

    return parser


def build_config(args) -> DatabaseConfig:
    """Apply command line overrides on top of the config file."""
    config = load_config(args.config)
    if args.dbpath:
        config = config.with_dir(args.dbpath)
    if args.ignore_unknown:
        config = config.with_unknown_keys(UnknownKeyPolicy.IGNORE)
    return config


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(name)s - %(levelname)s - %(message)s',
            stream=sys.stderr
        )

    from . import colors, display
    colors.init(nocolor=args.nocolor)
    display.init(mode='json' if getattr(args, 'json', False) else 'text')

    if not args.command:
        parser.print_help()
        return 1

    from .commands import cmd_dump, cmd_info, cmd_list

    try:
        config = build_config(args)

        if args.command in ('list', 'l'):
            return cmd_list(args, config)
        elif args.command in ('info', 'show'):
            return cmd_info(args, config)
        elif args.command == 'dump':
            return cmd_dump(args, config)

    except (PacdbError, ValueError, OSError) as e:
        print(colors.error(f"Error: {e}"), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130

    parser.print_help()
    return 1


if __name__ == '__main__':
    sys.exit(main())
