"""Query commands: list, info, dump."""

import sys

from .. import colors, display
from ...core.config import DatabaseConfig
from ...core.database import Database
from ...core.errors import FATAL_ERRORS, PacdbError, PackageNotFoundError


def _report(error: PacdbError):
    print(colors.warning(f"Warning: {error}"), file=sys.stderr)


def cmd_list(args, config: DatabaseConfig) -> int:
    """Handle list command."""
    db = Database.load(args.database, config=config)

    if display.get_mode() == display.DisplayMode.JSON:
        with db.packages() as it:
            display.print_json([
                {'name': pkg.name, 'version': pkg.version} for pkg in it.packages()
            ])
        return 0

    errors = 0
    with db.packages() as it:
        for item in it:
            if isinstance(item, FATAL_ERRORS):
                raise item
            if isinstance(item, PacdbError):
                _report(item)
                errors += 1
                continue
            print(colors.package_line(item.name, item.version))

    if errors:
        print(colors.warning(f"{errors} package(s) could not be read"), file=sys.stderr)
    return 0


def cmd_info(args, config: DatabaseConfig) -> int:
    """Handle info/show command."""
    db = Database.load(args.database, config=config)
    try:
        pkg = db.find(args.package)
    except PackageNotFoundError as e:
        print(colors.error(str(e)), file=sys.stderr)
        return 1

    if display.get_mode() == display.DisplayMode.JSON:
        display.print_json(pkg.to_dict())
    else:
        for line in display.format_package(pkg):
            print(line)
    return 0


def cmd_dump(args, config: DatabaseConfig) -> int:
    """Handle dump command."""
    db = Database.load(args.database, config=config)
    json_mode = display.get_mode() == display.DisplayMode.JSON

    packages = []
    errors = 0
    with db.packages() as it:
        for item in it:
            if isinstance(item, FATAL_ERRORS):
                raise item
            if isinstance(item, PacdbError):
                _report(item)
                errors += 1
                continue
            if json_mode:
                packages.append(item.to_dict())
            else:
                print(item)

    if json_mode:
        display.print_json(packages)

    if errors and args.strict:
        return 1
    return 0
