"""Package record built from one desc entry of a sync database."""

from dataclasses import asdict, dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from .desc import UnknownKeyPolicy


@dataclass(frozen=True)
class Package:
    """A package as described by its `<name>-<version>/desc` record.

    Every field defaults to empty or zero; a record missing a key is
    still a valid package. Instances are immutable once built, but list
    fields are plain lists, so packages are not hashable.
    """
    __hash__ = None

    name: str = ''
    base: str = ''
    filename: str = ''
    version: str = ''
    desc: str = ''
    url: str = ''
    size: int = 0           # %CSIZE%, compressed package size
    isize: int = 0          # %ISIZE%, installed size
    arch: str = ''
    md5sum: str = ''
    sha256sum: str = ''
    pgpsig: str = ''
    build_date: str = ''
    packager: str = ''
    licenses: List[str] = field(default_factory=list)
    provides: List[str] = field(default_factory=list)
    depends: List[str] = field(default_factory=list)
    make_depends: List[str] = field(default_factory=list)
    optional_depends: List[str] = field(default_factory=list)
    check_depends: List[str] = field(default_factory=list)

    @classmethod
    def from_desc(cls, text: str, policy: Optional['UnknownKeyPolicy'] = None) -> 'Package':
        """Build a package from the text of a desc record.

        Raises:
            PackagePropertyMissingError: On an unknown key (default policy)
            PackageParseSizeError: On a non-integer CSIZE/ISIZE
        """
        from .desc import UnknownKeyPolicy, parse_desc
        return parse_desc(text, policy or UnknownKeyPolicy.ERROR)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return asdict(self)

    def __str__(self) -> str:
        lines = [
            f"Name: {self.name}",
            f"Base: {self.base}",
            f"Filename: {self.filename}",
            f"Version: {self.version}",
            f"Desc: {self.desc}",
            f"URL: {self.url}",
            f"Size: {self.size}",
            f"ISize: {self.isize}",
            f"ARCH: {self.arch}",
            f"md5sum: {self.md5sum}",
            f"sha256sum: {self.sha256sum}",
            f"PGPSig: {self.pgpsig}",
            f"Build Date: {self.build_date}",
            f"Packager: {self.packager}",
            f"Licenses: {self.licenses}",
            f"Provides: {self.provides}",
            f"Depends: {self.depends}",
            f"Make Depends: {self.make_depends}",
            f"Optional Depends: {self.optional_depends}",
            f"Check Depends: {self.check_depends}",
        ]
        return '\n'.join(lines) + '\n'
