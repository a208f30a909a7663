"""
Binding module emitter.

Renders a ProbeReport as Julia source. The module is always built in
full before anything is written, and sections come in a fixed order:

    banner
    dynamic library path
    types
    structure layout (only when the catalog has layouts)
    constants (type sentinels, booleans, handles, platform extensions)
    status codes

Rendering depends on nothing but the report, so two runs in the same
build environment produce identical text.
"""
from __future__ import annotations

import os
import stat
import tempfile
from typing import IO, List, Sequence, Tuple

from atgen import __version__
from atgen._logging import get_logger
from atgen.catalog import Catalog, DEFAULT_CATALOG
from atgen.config import SdkConfig
from atgen.probe import run_probes
from atgen.types import ConstantEntry, ConstantGroup, OutputError, ProbeReport

logger = get_logger("emitter")

MODULE_FILENAME = "deps.jl"
TOOL_NAME = "atgen"
RULE = "#" + "-" * 78

SECTIONS: Tuple[Tuple[str, Tuple[ConstantGroup, ...]], ...] = (
    (
        "Constants.",
        (
            ConstantGroup.TYPE,
            ConstantGroup.BOOL_LITERAL,
            ConstantGroup.HANDLE,
            ConstantGroup.PLATFORM_EXTENSION,
        ),
    ),
    ("Status codes.", (ConstantGroup.STATUS_CODE,)),
)


def render_banner(platform: str) -> List[str]:
    return [
        "#",
        f"# {MODULE_FILENAME} --",
        "#",
        "# Definitions of types and constants for interfacing Andor cameras in Julia.",
        "#",
        "# *DO NOT EDIT* as this file is automatically generated for your machine.",
        "#",
        RULE,
        "#",
        f"# Generated by {TOOL_NAME} {__version__} for platform \"{platform}\".",
        f"# {TOOL_NAME} is released under the MIT license.",
        "#",
    ]


def _julia_string(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


def render_types(report: ProbeReport) -> List[str]:
    if not report.types:
        return []
    name_width = max(len(t.semantic_name) for t in report.types)
    type_width = max(len(t.host_type) for t in report.types)
    lines = []
    for alias in report.types:
        decl = f"const {alias.semantic_name.ljust(name_width)} = "
        if alias.comment:
            decl += f"{alias.host_type.ljust(type_width)} # {alias.comment}"
        else:
            decl += alias.host_type
        lines.append(decl)
    return lines


def render_layout(report: ProbeReport) -> List[str]:
    lines = [f"const _offsetof_{o.identifier} = {o.byte_offset}" for o in report.offsets]
    lines.extend(f"const _sizeof_{s.identifier} = {s.byte_size}" for s in report.sizes)
    return lines


def render_constant(entry: ConstantEntry) -> str:
    """One declaration, e.g. ``const SUCCESS = STATUS(0)``."""
    literal = entry.literal
    if entry.type_name is not None:
        literal = f"{entry.type_name}({literal})"
    decl = f"const {entry.public_name} = {literal}"
    if entry.comment:
        decl = f"{decl} # {entry.comment}"
    return decl


def render_constants(
    constants: Sequence[ConstantEntry], groups: Tuple[ConstantGroup, ...]
) -> List[str]:
    lines = []
    for group in groups:
        for entry in constants:
            if entry.group is group and entry.available:
                lines.append(render_constant(entry))
    return lines


def render(report: ProbeReport) -> str:
    """
    Render the complete binding module.

    Args:
        report: Facts gathered by ``run_probes``

    Returns:
        The module text, newline terminated
    """
    lines = render_banner(report.platform)
    lines += ["", "# Path to the dynamic library.", f"const _DLL = {_julia_string(report.library)}"]
    lines += ["", "# Types."] + render_types(report)
    if report.offsets or report.sizes:
        lines += ["", "# Structure layout."] + render_layout(report)
    for title, groups in SECTIONS:
        lines += ["", f"# {title}"] + render_constants(report.constants, groups)
    return "\n".join(lines) + "\n"


def emit(text: str, stream: IO[str]) -> None:
    """
    Write the module to ``stream`` in a single call.

    Raises:
        OutputError: If the stream refuses the write or the flush
    """
    try:
        stream.write(text)
        stream.flush()
    except OSError as e:
        raise OutputError(f"Cannot write binding module: {e}") from e


def write_module(text: str, path: str) -> None:
    """
    Atomically replace ``path`` with the module and make it read-only.

    Raises:
        OutputError: If the file cannot be written
    """
    directory = os.path.dirname(os.path.abspath(path))
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".atgen-", dir=directory)
    except OSError as e:
        raise OutputError(f"Cannot create {path}: {e}") from e
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            emit(text, f)
        mode = stat.S_IRUSR | stat.S_IRGRP | stat.S_IROTH
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError as e:
        raise OutputError(f"Cannot write {path}: {e}") from e
    finally:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
    logger.info(f"Wrote {path}")


def generate(
    config: SdkConfig,
    catalog: Catalog = DEFAULT_CATALOG,
    scan_header: bool = False,
) -> str:
    """
    Probe the build environment and render the binding module.

    Raises:
        BuildEnvironmentError: If the SDK cannot be probed
    """
    return render(run_probes(config, catalog, scan_header))
