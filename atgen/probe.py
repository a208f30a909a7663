"""
Type-width, layout and constant probers.

All three read facts from a ProbeSession; none of them knows whether the
session was compiled or scanned. ``run_probes`` performs the whole pass
in the fixed order types, layouts, constants.
"""
from __future__ import annotations

from typing import Any, Tuple

from cffi import CDefError

from atgen._build_ffi import compile_probe
from atgen._logging import get_logger
from atgen.catalog import Catalog, DEFAULT_CATALOG
from atgen.config import SdkConfig
from atgen.header import open_header_probe
from atgen.session import ProbeSession
from atgen.types import (
    BuildEnvironmentError,
    ConstantEntry,
    OffsetEntry,
    ProbeReport,
    SizeEntry,
    TypeAlias,
    TypeKind,
    TypeSpec,
    VALID_INTEGER_WIDTHS,
)

logger = get_logger("probe")

VALID_FLOAT_WIDTHS = (32, 64)


def all_bits_set(width_bits: int, signed: bool) -> int:
    """Value of an integer of the given representation with every bit set."""
    return -1 if signed else (1 << width_bits) - 1


def describe(spec: TypeSpec, header: str) -> str:
    """Inline comment naming the original type of ``spec``."""
    if spec.vendor:
        text = f"{spec.source_type} in <{header}>"
    else:
        text = spec.source_type
    if spec.comment:
        text = f"{text}, {spec.comment}"
    return text


def probe_type(ffi: Any, spec: TypeSpec, header: str = "atcore.h") -> TypeAlias:
    """
    Measure the representation of ``spec.source_type``.

    The width is ``8 * sizeof``. Signedness is decided by converting an
    all-ones bit pattern to the type and checking whether it reads back
    negative.

    Args:
        ffi: cffi FFI instance that knows ``spec.source_type``
        spec: Type to probe
        header: Vendor header named in comments

    Raises:
        BuildEnvironmentError: If the type is unknown or has a width the
            binding cannot express
    """
    # Only compiled FFI instances carry their own error class.
    ffi_error = getattr(ffi, "error", CDefError)
    try:
        ctype = ffi.typeof(spec.source_type)
        width_bits = ffi.sizeof(ctype) * 8
    except (CDefError, ffi_error) as e:
        raise BuildEnvironmentError(f"Cannot probe type {spec.source_type}: {e}") from e

    signed = False
    if spec.kind is TypeKind.INTEGER:
        if width_bits not in VALID_INTEGER_WIDTHS:
            raise BuildEnvironmentError(
                f"{spec.source_type} is {width_bits} bits wide, "
                f"expected one of {VALID_INTEGER_WIDTHS}"
            )
        ones = int(ffi.cast(ctype, ~0))
        signed = ones < 0
        if ones != all_bits_set(width_bits, signed):
            raise BuildEnvironmentError(
                f"{spec.source_type} is not a two's complement integer type"
            )
    elif spec.kind is TypeKind.FLOAT:
        if width_bits not in VALID_FLOAT_WIDTHS:
            raise BuildEnvironmentError(
                f"{spec.source_type} is {width_bits} bits wide, "
                f"expected one of {VALID_FLOAT_WIDTHS}"
            )
        signed = True

    alias = TypeAlias(
        semantic_name=spec.public_name,
        width_bits=width_bits,
        signed=signed,
        source_type=spec.source_type,
        kind=spec.kind,
        comment=describe(spec, header),
        target=spec.target,
    )
    logger.debug(f"{spec.public_name}: {spec.source_type} -> {alias.host_type}")
    return alias


def probe_types(ffi: Any, catalog: Catalog = DEFAULT_CATALOG) -> Tuple[TypeAlias, ...]:
    """Probe every catalog type, in catalog order."""
    return tuple(probe_type(ffi, spec, catalog.header) for spec in catalog.types)


def probe_layouts(
    session: ProbeSession,
) -> Tuple[Tuple[OffsetEntry, ...], Tuple[SizeEntry, ...]]:
    """
    Locate every catalog layout field and measure the structures involved.

    Raises:
        BuildEnvironmentError: If the session reports an impossible offset
    """
    catalog = session.catalog
    offsets = []
    for index, layout in enumerate(catalog.layouts):
        offset = session.offset(index)
        if offset < 0:
            raise BuildEnvironmentError(
                f"No offset for {layout.struct_type}.{layout.field}"
            )
        offsets.append(OffsetEntry(layout.identifier, offset))

    sizes = []
    for index, struct_type in enumerate(catalog.layout_structs()):
        sizes.append(SizeEntry(struct_identifier(struct_type), session.size(index)))
    return tuple(offsets), tuple(sizes)


def struct_identifier(struct_type: str) -> str:
    """``"struct foo"`` -> ``"foo"``; typedef names are returned unchanged."""
    words = struct_type.split()
    if len(words) == 2 and words[0] in ("struct", "union"):
        return words[1]
    return "_".join(words)


def probe_constants(session: ProbeSession) -> Tuple[ConstantEntry, ...]:
    """
    Resolve the catalog constants of the session's platform.

    Values are converted to the C type of the constant, so a macro such as
    ``0xFFFFFFFF`` keeps the meaning it has for its type. Undefined
    constants are kept as unavailable entries.
    """
    catalog = session.catalog
    ffi = session.ffi
    entries = []
    for index, spec in enumerate(session.constants):
        raw = session.constant(index)
        if raw is None:
            logger.debug(f"{catalog.vendor_symbol(spec)} is not defined")
            entries.append(ConstantEntry(
                public_name=spec.name,
                group=spec.group,
                raw_format=spec.raw_format,
                available=False,
                type_name=spec.type_name,
                comment=spec.comment,
            ))
            continue
        value = int(ffi.cast(catalog.coercion_type(spec), raw))
        entries.append(ConstantEntry(
            public_name=spec.name,
            group=spec.group,
            raw_format=spec.raw_format,
            available=True,
            value=value,
            type_name=spec.type_name,
            comment=spec.comment,
        ))
    return tuple(entries)


def open_session(
    config: SdkConfig,
    catalog: Catalog = DEFAULT_CATALOG,
    scan_header: bool = False,
) -> ProbeSession:
    """
    Open the probing environment for ``config``.

    Args:
        config: SDK locations and target platform
        catalog: Capability table
        scan_header: Read the header instead of compiling a probe
    """
    if scan_header:
        return open_header_probe(config, catalog)
    return compile_probe(config, catalog)


def collect(session: ProbeSession, library: str) -> ProbeReport:
    """Run the three probers on an open session."""
    types = probe_types(session.ffi, session.catalog)
    offsets, sizes = probe_layouts(session)
    constants = probe_constants(session)
    available = sum(1 for c in constants if c.available)
    logger.info(
        f"Probed {len(types)} types, {len(offsets)} offsets, "
        f"{available}/{len(constants)} constants"
    )
    return ProbeReport(
        library=library,
        platform=session.platform,
        types=types,
        offsets=offsets,
        sizes=sizes,
        constants=constants,
    )


def run_probes(
    config: SdkConfig,
    catalog: Catalog = DEFAULT_CATALOG,
    scan_header: bool = False,
) -> ProbeReport:
    """
    Probe the build environment described by ``config``.

    Raises:
        BuildEnvironmentError: If the SDK cannot be probed
    """
    catalog.validate()
    with open_session(config, catalog, scan_header) as session:
        return collect(session, config.library)
