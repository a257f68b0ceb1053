"""
pacdb - Streaming reader for pacman sync databases

Reads Arch Linux repository databases (core.db, extra.db, ...) featuring:
- Lazy archive walk, one package at a time
- Typed package records with validated fields
- Per-package errors that never stop the whole iteration
"""

__version__ = "0.1.0"
__author__ = "pacdb contributors"
