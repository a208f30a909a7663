"""
Data model, enums, and exceptions for the binding generator.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


# Integer widths a host binding can express as a fixed-size integer type.
VALID_INTEGER_WIDTHS = (8, 16, 32, 64)


class TypeKind(Enum):
    """
    How a probed type is rendered in the binding module.

    Attributes:
        INTEGER: Fixed-width integer, rendered as ``Int<bits>``/``UInt<bits>``
        FLOAT: Floating point, rendered as ``Float<bits>``
        POINTER: Pointer to another alias, rendered as ``Ptr{TARGET}``
        WSTRING: Wide character string, rendered as ``Cwstring``
    """
    INTEGER = "integer"
    FLOAT = "float"
    POINTER = "pointer"
    WSTRING = "wstring"


class ConstantGroup(Enum):
    """
    Semantic section a constant belongs to.

    The values mirror the section boundaries of the emitted module.
    """
    TYPE = "type"
    BOOL_LITERAL = "bool"
    HANDLE = "handle"
    PLATFORM_EXTENSION = "platform"
    STATUS_CODE = "status"


# ============== Catalog entries (static inputs) ==============


@dataclass(frozen=True)
class TypeSpec:
    """
    A primitive type the binding exposes.

    Attributes:
        public_name: Name of the alias in the binding module (e.g. "STATUS")
        source_type: C spelling of the probed type (e.g. "AT_H", "int")
        kind: Rendering kind
        comment: Inline comment for the emitted declaration
        vendor: True when ``source_type`` is a typedef from the SDK header
        target: Public name of the pointee for POINTER/WSTRING kinds
    """
    public_name: str
    source_type: str
    kind: TypeKind = TypeKind.INTEGER
    comment: Optional[str] = None
    vendor: bool = False
    target: Optional[str] = None


@dataclass(frozen=True)
class LayoutSpec:
    """A structure field whose byte offset the binding needs."""
    identifier: str
    struct_type: str
    field: str


@dataclass(frozen=True)
class ConstantSpec:
    """
    A named constant that may or may not be defined by the build environment.

    Attributes:
        name: Bare public name (e.g. "ERR_CONNECTION")
        group: Section of the emitted module
        type_name: Public type alias wrapping the value, or None for a bare literal
        raw_format: printf-style format of the literal (e.g. "%d", "0x%X")
        comment: Inline comment for the emitted declaration
        prefixed: True when the guarding macro carries the vendor prefix
        platforms: sys.platform prefixes the constant is restricted to (empty = all)
        c_type: C type the raw value is coerced to when ``type_name`` is None
    """
    name: str
    group: ConstantGroup
    type_name: Optional[str] = None
    raw_format: str = "%d"
    comment: Optional[str] = None
    prefixed: bool = True
    platforms: Tuple[str, ...] = ()
    c_type: str = "unsigned int"

    def applies_to(self, platform: str) -> bool:
        """Whether this constant is part of the catalog for ``platform``."""
        if not self.platforms:
            return True
        return any(platform.startswith(p) for p in self.platforms)


# ============== Probe results ==============


@dataclass(frozen=True)
class TypeAlias:
    """
    Representation facts of one probed type.

    ``width_bits`` and ``signed`` are always measured, never declared.
    """
    semantic_name: str
    width_bits: int
    signed: bool
    source_type: str
    kind: TypeKind = TypeKind.INTEGER
    comment: Optional[str] = None
    target: Optional[str] = None

    @property
    def host_type(self) -> str:
        """Host-language spelling of the alias."""
        if self.kind is TypeKind.INTEGER:
            return f"{'' if self.signed else 'U'}Int{self.width_bits}"
        if self.kind is TypeKind.FLOAT:
            return f"Float{self.width_bits}"
        if self.kind is TypeKind.WSTRING:
            return "Cwstring"
        return f"Ptr{{{self.target}}}"


@dataclass(frozen=True)
class OffsetEntry:
    identifier: str
    byte_offset: int


@dataclass(frozen=True)
class SizeEntry:
    identifier: str
    byte_size: int


@dataclass(frozen=True)
class ConstantEntry:
    """A resolved catalog entry."""
    public_name: str
    group: ConstantGroup
    raw_format: str
    available: bool
    value: Optional[int] = None
    type_name: Optional[str] = None
    comment: Optional[str] = None

    @property
    def literal(self) -> str:
        """The value formatted with the entry's printf-style format."""
        if self.value is None:
            raise ValueError(f"constant {self.public_name} is not available")
        # "%u" has no Python spelling; the value is already coerced.
        return self.raw_format.replace("%u", "%d") % self.value


@dataclass(frozen=True)
class ProbeReport:
    """Every fact the emitter needs, gathered in one probing pass."""
    library: str
    platform: str
    types: Tuple[TypeAlias, ...] = ()
    offsets: Tuple[OffsetEntry, ...] = ()
    sizes: Tuple[SizeEntry, ...] = ()
    constants: Tuple[ConstantEntry, ...] = ()

    @property
    def available_constants(self) -> Tuple[ConstantEntry, ...]:
        return tuple(c for c in self.constants if c.available)


# ============== Exceptions ==============


class AtgenError(Exception):
    """
    Base exception for all generator errors.

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BuildEnvironmentError(AtgenError):
    """
    Raised when the SDK or the host toolchain cannot be probed.

    Covers a missing header or library, a vendor type or structure field
    the headers do not declare, and compiler or linker failures. Generation
    is aborted without output.
    """
    pass


class OutputError(AtgenError):
    """Raised when the binding module cannot be written completely."""
    pass
