"""
Build environment configuration.

Locates the vendor SDK header and shared library the same way on every
platform:

    AT_DIR      SDK root (default /usr/local/andor, or
                C:/Program Files/AndorSDK3 on Windows)
    AT_INCDIR   directory containing atcore.h
    AT_LIBDIR   directory containing the shared library

A variable that is set but points to a directory without the expected
file is an error; it is never silently replaced by the default search.
"""
from __future__ import annotations

import os
import re
import sys
from dataclasses import dataclass
from typing import List, Mapping, Optional, Sequence, Tuple

from atgen._logging import get_logger
from atgen.catalog import VENDOR_HEADER
from atgen.types import BuildEnvironmentError

logger = get_logger("config")

DEFAULT_SDK_DIR = "/usr/local/andor"
DEFAULT_SDK_DIR_WINDOWS = "C:/Program Files/AndorSDK3"

_PATH_SEPARATORS = re.compile(r"[/\\]+")


def fix_path(path: str, platform: Optional[str] = None) -> str:
    """Normalise directory separators to single forward slashes."""
    platform = platform or sys.platform
    if platform.startswith("win"):
        return _PATH_SEPARATORS.sub("/", path)
    return re.sub(r"/+", "/", path)


def library_name(platform: str) -> str:
    """File name of the vendor shared library on ``platform``."""
    if platform.startswith("win"):
        return "atcore.dll"
    if platform == "darwin":
        return "libatcore.dylib"
    return "libatcore.so"


def _absolute(directory: str, filename: str, platform: str) -> str:
    return fix_path(os.path.abspath(os.path.join(directory, filename)), platform)


def _locate(
    filename: str,
    env_var: str,
    candidates: Tuple[str, ...],
    environ: Mapping[str, str],
    what: str,
    platform: str,
) -> str:
    if env_var in environ:
        directory = fix_path(environ[env_var], platform)
        if not os.path.isfile(os.path.join(directory, filename)):
            raise BuildEnvironmentError(
                f'Directory specified by environment variable "{env_var}" '
                f'("{directory}") does not contain {what} "{filename}". '
                f'Fix the definition of "{env_var}" and rebuild.'
            )
        return _absolute(directory, filename, platform)

    for directory in candidates:
        if os.path.isdir(directory) and os.path.isfile(os.path.join(directory, filename)):
            logger.debug(f"Found {filename} in {directory}")
            return _absolute(directory, filename, platform)

    raise BuildEnvironmentError(
        f'{what[0].upper()}{what[1:]} "{filename}" not found. '
        f'Define environment variable "{env_var}" with the directory '
        f"containing this file and rebuild."
    )


@dataclass(frozen=True)
class SdkConfig:
    """
    Where the SDK lives and how to compile probes against it.

    Attributes:
        header: Absolute path of atcore.h
        library: Absolute path of the vendor shared library
        platform: Target platform (sys.platform spelling)
        include_dirs: Extra include directories for the probe compilation
        extra_compile_args: Extra compiler flags
    """
    header: str
    library: str
    platform: str = sys.platform
    include_dirs: Tuple[str, ...] = ()
    extra_compile_args: Tuple[str, ...] = ()

    @property
    def include_dir(self) -> str:
        """Directory containing the vendor header."""
        return os.path.dirname(self.header) or "."

    @property
    def all_include_dirs(self) -> List[str]:
        return [self.include_dir, *self.include_dirs]

    @classmethod
    def from_environment(
        cls,
        *,
        sdk_dir: Optional[str] = None,
        header: Optional[str] = None,
        library: Optional[str] = None,
        platform: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
        include_dirs: Sequence[str] = (),
        extra_compile_args: Sequence[str] = (),
    ) -> "SdkConfig":
        """
        Resolve the SDK locations.

        Explicit ``header``/``library`` paths win over the environment,
        which wins over the search below ``sdk_dir``.

        Args:
            sdk_dir: SDK root, overriding AT_DIR
            header: Path of the vendor header
            library: Path of the vendor shared library
            platform: Target platform (default: sys.platform)
            environ: Environment mapping (default: os.environ)
            include_dirs: Extra include directories searched after the
                header's own directory
            extra_compile_args: Extra compiler flags for the probes

        Raises:
            BuildEnvironmentError: If the header or library cannot be found
        """
        environ = os.environ if environ is None else environ
        platform = platform or sys.platform
        windows = platform.startswith("win")

        root = sdk_dir or environ.get(
            "AT_DIR", DEFAULT_SDK_DIR_WINDOWS if windows else DEFAULT_SDK_DIR
        )
        root = fix_path(root, platform).rstrip("/") or "/"
        candidates = (f"{root}/include", root)

        if header is not None:
            header = fix_path(os.path.abspath(header), platform)
            if not os.path.isfile(header):
                raise BuildEnvironmentError(f'SDK header "{header}" does not exist.')
        else:
            header = _locate(
                VENDOR_HEADER, "AT_INCDIR", candidates, environ,
                "SDK header file", platform,
            )

        if library is not None:
            library = fix_path(os.path.abspath(library), platform)
            if not os.path.isfile(library):
                raise BuildEnvironmentError(f'SDK library "{library}" does not exist.')
        else:
            library = _locate(
                library_name(platform), "AT_LIBDIR", (f"{root}/lib", root), environ,
                "SDK library file", platform,
            )

        logger.info(f"Using SDK header {header}")
        logger.info(f"Using SDK library {library}")
        return cls(
            header=header,
            library=library,
            platform=platform,
            include_dirs=tuple(fix_path(d, platform) for d in include_dirs),
            extra_compile_args=tuple(extra_compile_args),
        )
