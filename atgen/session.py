"""
Probe sessions.

A session is one probing environment: an ``ffi`` object that knows the
SDK's types, plus answers about which catalog constants are defined and
where structure fields live. The constants a session answers for are the
catalog entries of its platform, addressed by position.
"""
from __future__ import annotations

from typing import Any, Optional, Tuple

from atgen.catalog import Catalog
from atgen.types import ConstantSpec


class ProbeSession:
    """
    Base class for probing environments.

    Subclasses implement ``constant``, ``offset`` and ``size``.

    Attributes:
        ffi: cffi FFI instance declaring the SDK types
        catalog: The catalog being resolved
        platform: Platform the constants were filtered for
        constants: Catalog constants for ``platform``, in emission order
    """

    def __init__(self, ffi: Any, catalog: Catalog, platform: str):
        self.ffi = ffi
        self.catalog = catalog
        self.platform = platform
        self.constants: Tuple[ConstantSpec, ...] = catalog.constants_for(platform)

    def constant(self, index: int) -> Optional[int]:
        """
        Raw value of ``constants[index]``.

        Returns:
            The macro value, or None when the guarding symbol is undefined
        """
        raise NotImplementedError

    def offset(self, index: int) -> int:
        """Byte offset of ``catalog.layouts[index]``."""
        raise NotImplementedError

    def size(self, index: int) -> int:
        """Byte size of ``catalog.layout_structs()[index]``."""
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self) -> "ProbeSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
