"""
Header scanning probe.

Fallback used when no C compiler is available. The vendor header is read
line by line:

    #define AT_<NAME> <integer literal>     -> constant value
    typedef <builtin type> AT_<NAME>;       -> vendor type

Scanned typedefs are declared to an ABI-mode cffi ``FFI`` so that type
widths and signedness are still measured by cffi rather than assumed.
Macro values that are not plain integer literals are reported and left
out. Platform extensions live in host headers and are not scanned.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Collection, Dict, List, Optional

from cffi import CDefError, FFI

from atgen._logging import get_logger
from atgen.catalog import Catalog, DEFAULT_CATALOG
from atgen.config import SdkConfig
from atgen.session import ProbeSession
from atgen.types import BuildEnvironmentError

logger = get_logger("header")

_DEFINE_RE = re.compile(r"^\s*#\s*define\s+([A-Za-z_]\w*)[ \t]+(.*?)\s*(?:/[/*].*)?$")
_TYPEDEF_RE = re.compile(r"^\s*typedef\s+([A-Za-z_][\w \t]*?)\s+([A-Za-z_]\w*)\s*;")
_INT_LITERAL_RE = re.compile(r"^([-+]?)\s*(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)[uUlL]*$")

# Compiler-specific spellings cffi does not parse.
_BUILTIN_ALIASES = {
    "__int8": "int8_t",
    "__int16": "int16_t",
    "__int32": "int32_t",
    "__int64": "int64_t",
    "unsigned __int8": "uint8_t",
    "unsigned __int16": "uint16_t",
    "unsigned __int32": "uint32_t",
    "unsigned __int64": "uint64_t",
}


def parse_int_literal(text: str) -> Optional[int]:
    """
    Value of a C integer literal, or None if ``text`` is not one.

    Surrounding parentheses, a sign and integer suffixes are accepted.
    """
    text = text.strip()
    while text.startswith("(") and text.endswith(")"):
        text = text[1:-1].strip()
    match = _INT_LITERAL_RE.match(text)
    if match is None:
        return None
    sign, digits = match.groups()
    if digits.lower().startswith("0x"):
        value = int(digits, 16)
    elif len(digits) > 1 and digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits)
    return -value if sign == "-" else value


@dataclass
class HeaderScan:
    """
    Raw facts found in a header.

    Attributes:
        defines: Macro name -> integer value
        typedefs: Type name -> builtin C type, first definition wins
        rejected: Macro name -> unparsed text, for integer-looking macros
            whose value is not a literal
    """
    defines: Dict[str, int] = field(default_factory=dict)
    typedefs: Dict[str, str] = field(default_factory=dict)
    rejected: Dict[str, str] = field(default_factory=dict)


def scan_header(
    text: str,
    prefix: str = "AT_",
    filename: str = "<header>",
    symbols: Optional[Collection[str]] = None,
) -> HeaderScan:
    """
    Collect prefixed macros and typedefs from header text.

    Args:
        text: Header contents
        prefix: Only names starting with this prefix are collected
        filename: Used in warnings
        symbols: Macros worth a warning when their value is not a literal
            (default: every prefixed macro)
    """
    scan = HeaderScan()
    for lineno, line in enumerate(text.splitlines(), start=1):
        match = _DEFINE_RE.match(line)
        if match:
            name, value = match.groups()
            if not name.startswith(prefix) or not value:
                continue
            parsed = parse_int_literal(value)
            if parsed is None:
                scan.rejected[name] = value
                if symbols is not None and name not in symbols:
                    continue
                logger.warning(
                    f'Parsed value "{value}" of {name} cannot be converted to an '
                    f"integer constant ({filename}, line {lineno})"
                )
            elif name not in scan.defines:
                scan.defines[name] = parsed
            continue

        match = _TYPEDEF_RE.match(line)
        if match:
            base, name = match.groups()
            if not name.startswith(prefix):
                continue
            base = " ".join(base.split())
            if name in scan.typedefs:
                logger.debug(f"Ignoring redefinition of {name} as {base} ({filename}, line {lineno})")
                continue
            scan.typedefs[name] = _BUILTIN_ALIASES.get(base, base)
    return scan


def declare_vendor_types(scan: HeaderScan, catalog: Catalog) -> FFI:
    """
    ABI-mode FFI declaring the vendor types found by ``scan``.

    Raises:
        BuildEnvironmentError: If a vendor type is missing or not a builtin
    """
    ffi = FFI()
    lines: List[str] = []
    for spec in catalog.types:
        if not spec.vendor:
            continue
        base = scan.typedefs.get(spec.source_type)
        if base is None:
            raise BuildEnvironmentError(
                f"Vendor type {spec.source_type} is not declared in {catalog.header}"
            )
        lines.append(f"typedef {base} {spec.source_type};")
    try:
        ffi.cdef("\n".join(lines))
    except CDefError as e:
        raise BuildEnvironmentError(f"Cannot interpret vendor typedefs: {e}") from e
    return ffi


class HeaderProbeSession(ProbeSession):
    """Session answering from a scanned header."""

    def __init__(self, scan: HeaderScan, catalog: Catalog, platform: str):
        super().__init__(declare_vendor_types(scan, catalog), catalog, platform)
        self._scan = scan
        for spec in self.constants:
            if not spec.prefixed:
                logger.info(f"Platform constant {spec.name} cannot be resolved by header scan")

    def constant(self, index: int) -> Optional[int]:
        spec = self.constants[index]
        if not spec.prefixed:
            return None
        return self._scan.defines.get(self.catalog.vendor_symbol(spec))

    def offset(self, index: int) -> int:
        raise BuildEnvironmentError(
            "Structure layouts require a compiled probe; header scan cannot locate fields"
        )

    def size(self, index: int) -> int:
        raise BuildEnvironmentError(
            "Structure sizes require a compiled probe; header scan cannot measure them"
        )


def open_header_probe(
    config: SdkConfig, catalog: Catalog = DEFAULT_CATALOG
) -> HeaderProbeSession:
    """
    Scan ``config.header`` and open a session on it.

    Raises:
        BuildEnvironmentError: If the header cannot be read or lacks a vendor type
    """
    try:
        with open(config.header, "r", encoding="utf-8", errors="replace") as f:
            text = f.read()
    except OSError as e:
        raise BuildEnvironmentError(f"Cannot read {config.header}: {e}") from e
    logger.info(f"Scanning {config.header}")
    symbols = {catalog.vendor_symbol(spec) for spec in catalog.constants}
    scan = scan_header(text, catalog.prefix, config.header, symbols)
    return HeaderProbeSession(scan, catalog, config.platform)
