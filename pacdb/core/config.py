"""
Configuration for locating and reading sync databases.

Defaults:
    db_dir        /var/lib/pacman    (databases live in <db_dir>/sync/<name>.db)
    unknown_keys  error              (abort a package on an unrecognized desc key)

Config file format (optional, one setting per line):
    db_dir=/srv/mirror/archlinux
    unknown_keys=ignore
    # Comments start with #
"""

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Optional, Union

from .desc import UnknownKeyPolicy

logger = logging.getLogger(__name__)

DEFAULT_DB_DIR = Path("/var/lib/pacman")
SYNC_SUBDIR = "sync"
DB_SUFFIX = ".db"

# Recognized config file keys
CONFIG_KEYS = ('db_dir', 'unknown_keys')


@dataclass(frozen=True)
class DatabaseConfig:
    """Where to find databases and how strictly to parse them."""
    db_dir: Path = DEFAULT_DB_DIR
    unknown_keys: UnknownKeyPolicy = UnknownKeyPolicy.ERROR

    def with_dir(self, db_dir: Union[str, Path]) -> 'DatabaseConfig':
        """Return a copy searching databases in db_dir."""
        return replace(self, db_dir=Path(db_dir).expanduser())

    def with_unknown_keys(self, policy: UnknownKeyPolicy) -> 'DatabaseConfig':
        """Return a copy applying policy to unrecognized desc keys."""
        return replace(self, unknown_keys=policy)


def read_config_file(path: Union[str, Path]) -> Dict[str, str]:
    """Read key=value settings from a config file.

    Returns:
        Dict with config values (unknown keys are dropped with a warning)

    Raises:
        OSError: If the file cannot be read
    """
    config = {}
    with open(path) as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                logger.warning(f"{path}:{lineno}: ignoring line without '='")
                continue
            key, value = line.split('=', 1)
            key = key.strip()
            if key not in CONFIG_KEYS:
                logger.warning(f"{path}:{lineno}: unknown setting {key!r}")
                continue
            config[key] = value.strip()
    return config


def load_config(path: Optional[Union[str, Path]] = None) -> DatabaseConfig:
    """Build a DatabaseConfig from defaults and an optional config file.

    A missing file gives the defaults.

    Raises:
        ValueError: If unknown_keys is neither 'error' nor 'ignore'
    """
    config = DatabaseConfig()
    if path is None:
        return config

    path = Path(path)
    if not path.exists():
        logger.debug(f"Config file {path} not found, using defaults")
        return config

    values = read_config_file(path)
    if 'db_dir' in values:
        config = config.with_dir(values['db_dir'])
    if 'unknown_keys' in values:
        try:
            policy = UnknownKeyPolicy(values['unknown_keys'].lower())
        except ValueError:
            raise ValueError(
                f"{path}: unknown_keys must be 'error' or 'ignore', "
                f"got {values['unknown_keys']!r}"
            )
        config = config.with_unknown_keys(policy)
    return config
