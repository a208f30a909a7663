"""
Static catalog of the Andor SDK3 binding surface.

Everything the generated module may contain is listed here once, in
emission order. Vendor constants are written with their bare suffix;
the guarding macro is derived by prepending VENDOR_PREFIX. Whether an
entry ends up in the output is decided by the probe session, never here.

The catalog covers several SDK releases: constants a given release does
not define are simply absent from that machine's module.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from atgen.types import (
    ConstantGroup,
    ConstantSpec,
    LayoutSpec,
    TypeKind,
    TypeSpec,
)

VENDOR_PREFIX = "AT_"
VENDOR_HEADER = "atcore.h"

# Host headers providing platform extension constants, keyed by sys.platform prefix.
PLATFORM_HEADERS: Dict[str, Tuple[str, ...]] = {
    "linux": ("fcntl.h", "errno.h", "sys/ioctl.h", "linux/usbdevice_fs.h"),
}


TYPES: Tuple[TypeSpec, ...] = (
    TypeSpec("STATUS", "int", comment="for returned status"),
    TypeSpec("HANDLE", "AT_H", vendor=True),
    TypeSpec("INDEX", "int", comment="for camera index"),
    TypeSpec("ENUM", "int", comment="for enumeration"),
    TypeSpec("BOOL", "AT_BOOL", vendor=True),
    TypeSpec("INT", "AT_64", vendor=True),
    TypeSpec("FLOAT", "double", kind=TypeKind.FLOAT),
    TypeSpec("BYTE", "AT_U8", vendor=True),
    TypeSpec("WCHAR", "AT_WC", vendor=True),
    TypeSpec("STRING", "AT_WC *", kind=TypeKind.WSTRING, target="WCHAR"),
    TypeSpec("FEATURE", "AT_WC *", kind=TypeKind.POINTER, target="WCHAR"),
    TypeSpec("LENGTH", "int", comment="for string length"),
    TypeSpec("MSEC", "unsigned int", comment="for timeout in milliseconds"),
)

# The SDK exposes no structure the binding needs to address.
LAYOUTS: Tuple[LayoutSpec, ...] = ()


def _status(name: str) -> ConstantSpec:
    return ConstantSpec(name, ConstantGroup.STATUS_CODE, "STATUS", "%d")


CONSTANTS: Tuple[ConstantSpec, ...] = (
    ConstantSpec("INFINITE", ConstantGroup.TYPE, "MSEC", "0x%X"),
    ConstantSpec("TRUE", ConstantGroup.BOOL_LITERAL, "BOOL", "%d"),
    ConstantSpec("FALSE", ConstantGroup.BOOL_LITERAL, "BOOL", "%d"),
    ConstantSpec("HANDLE_UNINITIALISED", ConstantGroup.HANDLE, "HANDLE", "%d"),
    ConstantSpec("HANDLE_SYSTEM", ConstantGroup.HANDLE, "HANDLE", "%d"),
    ConstantSpec(
        "USBDEVFS_RESET",
        ConstantGroup.PLATFORM_EXTENSION,
        raw_format="%u",
        comment="ioctl() request to reset USB device",
        prefixed=False,
        platforms=("linux",),
    ),
    ConstantSpec(
        "O_WRONLY",
        ConstantGroup.PLATFORM_EXTENSION,
        raw_format="%u",
        prefixed=False,
        platforms=("linux",),
    ),
    _status("SUCCESS"),
    _status("CALLBACK_SUCCESS"),
    _status("ERR_NOTINITIALISED"),
    _status("ERR_NOTIMPLEMENTED"),
    _status("ERR_READONLY"),
    _status("ERR_NOTREADABLE"),
    _status("ERR_NOTWRITABLE"),
    _status("ERR_OUTOFRANGE"),
    _status("ERR_INDEXNOTAVAILABLE"),
    _status("ERR_INDEXNOTIMPLEMENTED"),
    _status("ERR_EXCEEDEDMAXSTRINGLENGTH"),
    _status("ERR_CONNECTION"),
    _status("ERR_NODATA"),
    _status("ERR_INVALIDHANDLE"),
    _status("ERR_TIMEDOUT"),
    _status("ERR_BUFFERFULL"),
    _status("ERR_INVALIDSIZE"),
    _status("ERR_INVALIDALIGNMENT"),
    _status("ERR_COMM"),
    _status("ERR_STRINGNOTAVAILABLE"),
    _status("ERR_STRINGNOTIMPLEMENTED"),
    _status("ERR_NULL_FEATURE"),
    _status("ERR_NULL_HANDLE"),
    _status("ERR_NULL_IMPLEMENTED_VAR"),
    _status("ERR_NULL_READABLE_VAR"),
    _status("ERR_NULL_READONLY_VAR"),
    _status("ERR_NULL_WRITABLE_VAR"),
    _status("ERR_NULL_MINVALUE"),
    _status("ERR_NULL_MAXVALUE"),
    _status("ERR_NULL_VALUE"),
    _status("ERR_NULL_STRING"),
    _status("ERR_NULL_COUNT_VAR"),
    _status("ERR_NULL_ISAVAILABLE_VAR"),
    _status("ERR_NULL_MAXSTRINGLENGTH"),
    _status("ERR_NULL_EVCALLBACK"),
    _status("ERR_NULL_QUEUE_PTR"),
    _status("ERR_NULL_WAIT_PTR"),
    _status("ERR_NULL_PTRSIZE"),
    _status("ERR_NOMEMORY"),
    _status("ERR_DEVICEINUSE"),
    _status("ERR_DEVICENOTFOUND"),
    _status("ERR_HARDWARE_OVERFLOW"),
)


@dataclass(frozen=True)
class Catalog:
    """
    The complete declarative capability table.

    Attributes:
        types: Type aliases, in emission order
        layouts: Structure fields to locate
        constants: Conditionally available constants, in emission order
        prefix: Vendor macro prefix stripped from public names
        header: Vendor header the probes include
        platform_headers: Host headers per platform prefix
    """
    types: Tuple[TypeSpec, ...] = TYPES
    layouts: Tuple[LayoutSpec, ...] = LAYOUTS
    constants: Tuple[ConstantSpec, ...] = CONSTANTS
    prefix: str = VENDOR_PREFIX
    header: str = VENDOR_HEADER
    platform_headers: Tuple[Tuple[str, Tuple[str, ...]], ...] = tuple(
        PLATFORM_HEADERS.items()
    )

    def vendor_symbol(self, spec: ConstantSpec) -> str:
        """Name of the macro guarding ``spec``."""
        return f"{self.prefix}{spec.name}" if spec.prefixed else spec.name

    def type_spec(self, public_name: str) -> TypeSpec:
        for spec in self.types:
            if spec.public_name == public_name:
                return spec
        raise KeyError(public_name)

    def coercion_type(self, spec: ConstantSpec) -> str:
        """C type a constant's value is converted to before formatting."""
        if spec.type_name is None:
            return spec.c_type
        return self.type_spec(spec.type_name).source_type

    def constants_for(self, platform: str) -> Tuple[ConstantSpec, ...]:
        """Catalog entries that belong to ``platform``, in emission order."""
        return tuple(c for c in self.constants if c.applies_to(platform))

    def headers_for(self, platform: str) -> Tuple[str, ...]:
        """Host headers needed by the platform extensions of ``platform``."""
        headers = []
        for prefix, names in self.platform_headers:
            if platform.startswith(prefix):
                headers.extend(names)
        return tuple(headers)

    def layout_structs(self) -> Tuple[str, ...]:
        """Distinct structure types referenced by ``layouts``, first use first."""
        structs = []
        for layout in self.layouts:
            if layout.struct_type not in structs:
                structs.append(layout.struct_type)
        return tuple(structs)

    def validate(self) -> None:
        """
        Check the table is self-consistent.

        Raises:
            ValueError: On duplicate public names or unknown type aliases
        """
        seen = set()
        type_names = {t.public_name for t in self.types}
        for spec in self.types:
            if spec.public_name in seen:
                raise ValueError(f"duplicate type alias {spec.public_name}")
            seen.add(spec.public_name)
            if spec.kind in (TypeKind.POINTER, TypeKind.WSTRING) and spec.target not in type_names:
                raise ValueError(f"type {spec.public_name} points to unknown alias {spec.target}")
        for spec in self.constants:
            if spec.name in seen:
                raise ValueError(f"duplicate public name {spec.name}")
            seen.add(spec.name)
            if spec.type_name is not None and spec.type_name not in type_names:
                raise ValueError(f"constant {spec.name} uses unknown type {spec.type_name}")
        for layout in self.layouts:
            if layout.identifier in seen:
                raise ValueError(f"duplicate layout identifier {layout.identifier}")
            seen.add(layout.identifier)


DEFAULT_CATALOG = Catalog()
