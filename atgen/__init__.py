"""
atgen - Andor SDK binding generator

Probes the installed Andor SDK3 (<atcore.h>, libatcore) and the host C
ABI, and prints a Julia module (deps.jl) with the SDK's type aliases and
every constant the installed SDK release defines.

Example usage:
    >>> from atgen import SdkConfig, generate
    >>> config = SdkConfig.from_environment()
    >>> text = generate(config)
    >>> print(text)
"""

__version__ = "1.0.0"

# Data model
from atgen.types import (
    TypeKind,
    ConstantGroup,
    TypeSpec,
    LayoutSpec,
    ConstantSpec,
    TypeAlias,
    OffsetEntry,
    SizeEntry,
    ConstantEntry,
    ProbeReport,
)

# Exceptions
from atgen.types import AtgenError, BuildEnvironmentError, OutputError

# Catalog and configuration
from atgen.catalog import Catalog, DEFAULT_CATALOG
from atgen.config import SdkConfig

# Probing and emission
from atgen.probe import probe_type, probe_types, probe_layouts, probe_constants, run_probes
from atgen.emitter import render, emit, write_module, generate

# Logging configuration
from atgen._logging import configure_logging

__all__ = [
    "__version__",

    "TypeKind",
    "ConstantGroup",
    "TypeSpec",
    "LayoutSpec",
    "ConstantSpec",
    "TypeAlias",
    "OffsetEntry",
    "SizeEntry",
    "ConstantEntry",
    "ProbeReport",

    "AtgenError",
    "BuildEnvironmentError",
    "OutputError",

    "Catalog",
    "DEFAULT_CATALOG",
    "SdkConfig",

    "probe_type",
    "probe_types",
    "probe_layouts",
    "probe_constants",
    "run_probes",
    "render",
    "emit",
    "write_module",
    "generate",

    "configure_logging",
]
