"""Core modules for pacdb"""

from .database import Database, PackageIterator
from .desc import Token, UnknownKeyPolicy, build_package, parse_desc, tokenize
from .errors import PacdbError
from .package import Package

__all__ = [
    'Database', 'PackageIterator', 'Package', 'PacdbError',
    'Token', 'UnknownKeyPolicy', 'build_package', 'parse_desc', 'tokenize',
]
