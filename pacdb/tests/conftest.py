"""Shared fixtures: synthetic sync databases written to tmp_path."""

import io
import tarfile
from pathlib import Path
from typing import Dict, Union

import pytest

SUPERTUX_DESC = """%FILENAME%
supertux-0.6.2-3-x86_64.pkg.tar.zst

%NAME%
supertux

%BASE%
supertux

%VERSION%
0.6.2-3

%DESC%
A classic 2D jump'n'run sidescroller game in a style similar to the original SuperMario games

%CSIZE%
157518488

%ISIZE%
229551408

%MD5SUM%
bc9013783217dff3081d4daa4c222c32

%SHA256SUM%
c1d14f744e8da4bbc50ef1b6ec41d5e2cbeb3d1e9f9f5a79d05a866f40d7967a

%URL%
https://www.supertux.org

%LICENSE%
GPL

%ARCH%
x86_64

%BUILDDATE%
1607789295

%PACKAGER%
Felix Yan <felixonmars@archlinux.org>

%DEPENDS%
curl
openal
libvorbis
glew
sdl2_image

%MAKEDEPENDS%
cmake
boost

"""

CURL_DESC = """%FILENAME%
curl-7.74.0-1-x86_64.pkg.tar.zst

%NAME%
curl

%VERSION%
7.74.0-1

%DESC%
An URL retrieval utility and library

%CSIZE%
1148044

%ISIZE%
1660913

%LICENSE%
MIT

%ARCH%
x86_64

%PROVIDES%
libcurl.so=4-64

%DEPENDS%
ca-certificates
krb5
libssh2

"""

Content = Union[str, bytes]


def _add_file(tar: tarfile.TarFile, name: str, content: Content):
    data = content.encode('utf-8') if isinstance(content, str) else content
    info = tarfile.TarInfo(name)
    info.size = len(data)
    tar.addfile(info, io.BytesIO(data))


def _add_dir(tar: tarfile.TarFile, name: str):
    info = tarfile.TarInfo(name)
    info.type = tarfile.DIRTYPE
    info.mode = 0o755
    tar.addfile(info)


def build_tar(packages: Dict[str, Dict[str, Content]]) -> bytes:
    """Build an uncompressed tar with one directory per package."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode='w') as tar:
        for dirname, files in packages.items():
            _add_dir(tar, dirname)
            for filename, content in files.items():
                _add_file(tar, f"{dirname}/{filename}", content)
    return buf.getvalue()


def write_db(path: Path, packages: Dict[str, Dict[str, Content]],
             compression: str = 'gzip') -> Path:
    """Write a sync database archive to path."""
    data = build_tar(packages)
    if compression == 'gzip':
        import gzip
        data = gzip.compress(data)
    elif compression == 'zstd':
        import zstandard
        data = zstandard.ZstdCompressor().compress(data)
    elif compression == 'xz':
        import lzma
        data = lzma.compress(data)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path


@pytest.fixture
def two_packages() -> Dict[str, Dict[str, Content]]:
    """Two package directories, each with a desc and an extra file."""
    return {
        'supertux-0.6.2-3': {
            'desc': SUPERTUX_DESC,
            'files': '%FILES%\nusr/\nusr/bin/\nusr/bin/supertux2\n\n',
        },
        'curl-7.74.0-1': {
            'desc': CURL_DESC,
            'desc.sig': b'\x89\x02\x33\x04\x00\x01\x0a\x00',
        },
    }


@pytest.fixture
def db_dir(tmp_path, two_packages) -> Path:
    """A pacman-style base directory holding sync/core.db."""
    write_db(tmp_path / 'sync' / 'core.db', two_packages)
    return tmp_path


@pytest.fixture
def core_db(db_dir) -> Path:
    return db_dir / 'sync' / 'core.db'
