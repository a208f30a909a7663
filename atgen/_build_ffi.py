"""
CFFI build of the compiled probe.

The probe is a small extension module generated from the catalog and
compiled against the SDK headers. It is never installed: it is built in
a temporary directory, loaded, queried and discarded.

What the compiler decides:
    - width and signedness of every vendor typedef, declared to cffi as
      ``typedef int... NAME;``
    - which catalog macros are defined, through one ``#ifdef`` per entry
    - field offsets, by taking the address of a field of a structure
      placed at address zero
"""
from __future__ import annotations

import contextlib
import hashlib
import importlib.util
import logging
import os
import sys
import tempfile
from typing import List, Optional, Tuple

from cffi import CDefError, FFI, VerificationError

from atgen._logging import get_logger
from atgen.catalog import Catalog, DEFAULT_CATALOG
from atgen.config import SdkConfig
from atgen.session import ProbeSession
from atgen.types import BuildEnvironmentError, TypeKind

logger = get_logger("build_ffi")

PROBE_MODULE_PREFIX = "_atgen_probe_"


def render_cdef(catalog: Catalog) -> str:
    """Declarations cffi needs to talk to the probe."""
    lines = []
    for spec in catalog.types:
        if not spec.vendor:
            continue
        dots = "float..." if spec.kind is TypeKind.FLOAT else "int..."
        lines.append(f"typedef {dots} {spec.source_type};")
    lines.append("int atgen_constant(int index, long long *value);")
    lines.append("long atgen_offset(int index);")
    lines.append("unsigned long atgen_sizeof(int index);")
    return "\n".join(lines) + "\n"


def render_source(catalog: Catalog, platform: str) -> str:
    """C source of the probe for ``platform``."""
    lines: List[str] = [f"#include <{catalog.header}>"]
    for header in catalog.headers_for(platform):
        lines.append(f"#include <{header}>")
    lines.append("")

    lines.append("static int atgen_constant(int index, long long *value)")
    lines.append("{")
    lines.append("    (void)value;")
    lines.append("    switch (index) {")
    for index, spec in enumerate(catalog.constants_for(platform)):
        symbol = catalog.vendor_symbol(spec)
        lines.append(f"#ifdef {symbol}")
        lines.append(f"    case {index}:")
        lines.append(f"        *value = (long long)({symbol});")
        lines.append("        return 1;")
        lines.append("#endif")
    lines.append("    default:")
    lines.append("        break;")
    lines.append("    }")
    lines.append("    return 0;")
    lines.append("}")
    lines.append("")

    lines.append("static long atgen_offset(int index)")
    lines.append("{")
    lines.append("    switch (index) {")
    for index, layout in enumerate(catalog.layouts):
        lines.append(f"    case {index}:")
        lines.append(
            f"        return (long)((char *)&(({layout.struct_type} *)0)->{layout.field}"
            " - (char *)0);"
        )
    lines.append("    default:")
    lines.append("        break;")
    lines.append("    }")
    lines.append("    return -1L;")
    lines.append("}")
    lines.append("")

    lines.append("static unsigned long atgen_sizeof(int index)")
    lines.append("{")
    lines.append("    switch (index) {")
    for index, struct_type in enumerate(catalog.layout_structs()):
        lines.append(f"    case {index}:")
        lines.append(f"        return (unsigned long)sizeof({struct_type});")
    lines.append("    default:")
    lines.append("        break;")
    lines.append("    }")
    lines.append("    return 0UL;")
    lines.append("}")
    return "\n".join(lines) + "\n"


def module_name(cdef: str, source: str, config: SdkConfig) -> str:
    """Extension name, unique for a given probe and include path."""
    digest = hashlib.sha1()
    for part in (cdef, source, *config.all_include_dirs, *config.extra_compile_args):
        digest.update(part.encode("utf-8"))
        digest.update(b"\0")
    return PROBE_MODULE_PREFIX + digest.hexdigest()[:12]


def build_probe_ffi(
    config: SdkConfig, catalog: Catalog = DEFAULT_CATALOG
) -> Tuple[FFI, str]:
    """
    Create the FFI builder for the probe.

    Returns:
        The builder and the name of the extension it produces

    Raises:
        BuildEnvironmentError: If the catalog declarations are rejected
    """
    cdef = render_cdef(catalog)
    source = render_source(catalog, config.platform)

    ffibuilder = FFI()
    try:
        ffibuilder.cdef(cdef)
    except CDefError as e:
        raise BuildEnvironmentError(f"Invalid probe declarations: {e}") from e

    name = module_name(cdef, source, config)
    logger.debug(f"Probe module {name}, include dirs: {config.all_include_dirs}")
    ffibuilder.set_source(
        name,
        source,
        include_dirs=config.all_include_dirs,
        extra_compile_args=["-Wall", *config.extra_compile_args],
    )
    return ffibuilder, name


def _load_extension(name: str, path: str):
    spec = importlib.util.spec_from_file_location(name, path)
    if spec is None or spec.loader is None:
        raise BuildEnvironmentError(f"Cannot load compiled probe {path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class CompiledProbeSession(ProbeSession):
    """Session backed by the compiled probe extension."""

    def __init__(self, ffi, lib, catalog: Catalog, platform: str):
        super().__init__(ffi, catalog, platform)
        self._lib = lib

    def constant(self, index: int) -> Optional[int]:
        value = self.ffi.new("long long *")
        if self._lib.atgen_constant(index, value):
            return int(value[0])
        return None

    def offset(self, index: int) -> int:
        return int(self._lib.atgen_offset(index))

    def size(self, index: int) -> int:
        return int(self._lib.atgen_sizeof(index))


def compile_probe(
    config: SdkConfig, catalog: Catalog = DEFAULT_CATALOG
) -> CompiledProbeSession:
    """
    Build and load the probe for ``config``.

    Compiler output never reaches standard output, which carries the
    generated module.

    Raises:
        BuildEnvironmentError: If the probe does not compile against the SDK
            (missing header, undeclared vendor type or structure field)
    """
    ffibuilder, name = build_probe_ffi(config, catalog)
    verbose = logger.isEnabledFor(logging.DEBUG)

    # A loaded extension cannot be deleted on Windows.
    with tempfile.TemporaryDirectory(prefix="atgen-", ignore_cleanup_errors=True) as tmpdir:
        logger.info(f"Compiling probe against {config.header}")
        try:
            with contextlib.redirect_stdout(sys.stderr):
                path = ffibuilder.compile(tmpdir=tmpdir, verbose=verbose)
        except VerificationError as e:
            raise BuildEnvironmentError(
                f"Probe compilation against {config.header} failed: {e}"
            ) from e
        module = _load_extension(name, os.path.abspath(path))

    return CompiledProbeSession(module.ffi, module.lib, catalog, config.platform)
