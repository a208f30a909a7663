"""
pytest configuration and fixtures for atgen tests.
"""
import os
import shutil
import sys
import sysconfig
from typing import Callable, Dict, Optional

import pytest
from cffi import FFI


def _compiler_available() -> bool:
    """A C compiler and the Python headers are needed to build probes."""
    compiler = os.environ.get("CC", "").split()
    candidates = compiler[:1] + ["cc", "gcc", "clang", "cl"]
    if not any(shutil.which(c) for c in candidates if c):
        return False
    include = sysconfig.get_paths().get("include")
    return bool(include) and os.path.isfile(os.path.join(include, "Python.h"))


COMPILER_AVAILABLE = _compiler_available()
LINUX_USB_AVAILABLE = sys.platform.startswith("linux") and os.path.isfile(
    "/usr/include/linux/usbdevice_fs.h"
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "requires_compiler: mark test as compiling a probe extension"
    )
    config.addinivalue_line(
        "markers", "requires_linux_usb: mark test as needing <linux/usbdevice_fs.h>"
    )


def pytest_collection_modifyitems(config, items):
    """Skip tests based on available tooling."""
    skip_compiler = pytest.mark.skip(reason="C compiler or Python headers not available")
    skip_usb = pytest.mark.skip(reason="Linux USB headers not available")

    for item in items:
        if "requires_compiler" in item.keywords and not COMPILER_AVAILABLE:
            item.add_marker(skip_compiler)
        if "requires_linux_usb" in item.keywords and not LINUX_USB_AVAILABLE:
            item.add_marker(skip_usb)


VENDOR_TYPEDEFS = """\
typedef int AT_H;
typedef int AT_BOOL;
typedef long long AT_64;
typedef unsigned char AT_U8;
typedef wchar_t AT_WC;
"""


@pytest.fixture
def vendor_ffi() -> FFI:
    """ABI-mode FFI declaring the SDK typedefs like a typical atcore.h."""
    ffi = FFI()
    ffi.cdef(VENDOR_TYPEDEFS)
    return ffi


@pytest.fixture
def make_sdk(tmp_path) -> Callable[..., Dict[str, str]]:
    """
    Factory creating a fake SDK tree.

    The header declares the vendor typedefs and the given macros; the
    library is an empty file, since probes never link against it.

    Returns:
        Dict with "root", "header" and "library" paths
    """
    def factory(
        defines: Optional[Dict[str, str]] = None,
        extra: str = "",
        typedefs: str = VENDOR_TYPEDEFS,
    ) -> Dict[str, str]:
        root = tmp_path / "andor"
        include = root / "include"
        lib = root / "lib"
        include.mkdir(parents=True, exist_ok=True)
        lib.mkdir(parents=True, exist_ok=True)

        macros = "\n".join(
            f"#define AT_{name} {value}" for name, value in (defines or {}).items()
        )
        header = include / "atcore.h"
        header.write_text("\n".join([
            "#ifndef ATCORE_H",
            "#define ATCORE_H",
            "#include <stddef.h>",
            macros,
            typedefs,
            extra,
            "#endif",
            "",
        ]))
        library = lib / "libatcore.so"
        library.write_bytes(b"")
        return {"root": str(root), "header": str(header), "library": str(library)}

    return factory
