"""
Tests for the header scanning probe.
"""
import logging

import pytest

from atgen.catalog import Catalog, DEFAULT_CATALOG
from atgen.config import SdkConfig
from atgen.header import (
    declare_vendor_types,
    open_header_probe,
    parse_int_literal,
    scan_header,
)
from atgen.probe import run_probes
from atgen.types import BuildEnvironmentError, LayoutSpec


class TestParseIntLiteral:
    """Tests for parse_int_literal()."""

    @pytest.mark.parametrize("text,value", [
        ("0", 0),
        ("17", 17),
        ("-1", -1),
        ("(-1)", -1),
        ("( 12 )", 12),
        ("0xFFFFFFFF", 4294967295),
        ("0x1Fu", 31),
        ("010", 8),
        ("100UL", 100),
        ("+3", 3),
    ])
    def test_literals(self, text, value):
        assert parse_int_literal(text) == value

    @pytest.mark.parametrize("text", [
        "AT_FOO",
        "1.5",
        '"text"',
        "1 << 3",
        "(AT_BASE + 1)",
        "",
    ])
    def test_not_literals(self, text):
        assert parse_int_literal(text) is None


SAMPLE_HEADER = """\
#ifndef ATCORE_H
#define ATCORE_H
#define AT_INFINITE 0xFFFFFFFF
#define AT_SUCCESS 0
#define AT_ERR_NODATA 11 // no data
#define AT_ERR_TIMEDOUT 13 /* timed out */
#define AT_HANDLE_UNINITIALISED (-1)
#define AT_EXP_CONV AT_CONVERSION
#define OTHER_VALUE 5
#define AT_SUCCESS 1
typedef int AT_H;
typedef unsigned __int64 AT_U64;
typedef long AT_H;
typedef int OTHER_T;
#endif
"""


class TestScanHeader:
    """Tests for scan_header()."""

    def test_defines(self):
        scan = scan_header(SAMPLE_HEADER)
        assert scan.defines == {
            "AT_INFINITE": 0xFFFFFFFF,
            "AT_SUCCESS": 0,
            "AT_ERR_NODATA": 11,
            "AT_ERR_TIMEDOUT": 13,
            "AT_HANDLE_UNINITIALISED": -1,
        }

    def test_rejected(self):
        scan = scan_header(SAMPLE_HEADER)
        assert scan.rejected == {"AT_EXP_CONV": "AT_CONVERSION"}

    def test_typedefs(self):
        """First definition wins and compiler spellings are translated."""
        scan = scan_header(SAMPLE_HEADER)
        assert scan.typedefs == {"AT_H": "int", "AT_U64": "uint64_t"}

    def test_warns_on_unparseable_value(self, caplog):
        caplog.set_level(logging.WARNING, logger="atgen")
        scan_header(SAMPLE_HEADER, filename="atcore.h")
        messages = [r.getMessage() for r in caplog.records]
        assert any("AT_EXP_CONV" in m and "atcore.h, line 8" in m for m in messages)

    def test_warning_limited_to_symbols(self, caplog):
        caplog.set_level(logging.WARNING, logger="atgen")
        scan_header(SAMPLE_HEADER, symbols={"AT_SUCCESS"})
        assert not caplog.records


class TestDeclareVendorTypes:
    """Tests for declaring scanned typedefs to cffi."""

    def test_missing_vendor_type(self):
        scan = scan_header("typedef int AT_H;\n")
        with pytest.raises(BuildEnvironmentError, match="AT_BOOL"):
            declare_vendor_types(scan, DEFAULT_CATALOG)

    def test_declares_all_vendor_types(self, make_sdk):
        sdk = make_sdk()
        with open(sdk["header"]) as f:
            scan = scan_header(f.read())
        ffi = declare_vendor_types(scan, DEFAULT_CATALOG)
        assert ffi.sizeof("AT_64") == 8
        assert ffi.sizeof("AT_U8") == 1


class TestHeaderProbe:
    """Tests for a complete header scan pass."""

    def test_run_probes(self, make_sdk):
        sdk = make_sdk(defines={
            "SUCCESS": "0",
            "ERR_CONNECTION": "17",
            "INFINITE": "0xFFFFFFFF",
            "HANDLE_UNINITIALISED": "-1",
        })
        config = SdkConfig(header=sdk["header"], library=sdk["library"], platform="linux")
        report = run_probes(config, scan_header=True)

        values = {c.public_name: c.value for c in report.available_constants}
        assert values == {
            "INFINITE": 4294967295,
            "HANDLE_UNINITIALISED": -1,
            "SUCCESS": 0,
            "ERR_CONNECTION": 17,
        }
        types = {t.semantic_name: t.host_type for t in report.types}
        assert types["INT"] == "Int64"
        assert types["BYTE"] == "UInt8"

    def test_platform_extensions_are_unavailable(self, make_sdk):
        sdk = make_sdk(defines={"SUCCESS": "0"})
        config = SdkConfig(header=sdk["header"], library=sdk["library"], platform="linux")
        with open_header_probe(config) as session:
            index = [c.name for c in session.constants].index("USBDEVFS_RESET")
            assert session.constant(index) is None

    def test_layouts_need_compiler(self, make_sdk):
        sdk = make_sdk()
        config = SdkConfig(header=sdk["header"], library=sdk["library"], platform="linux")
        catalog = Catalog(layouts=(LayoutSpec("frame_tag", "struct frame", "tag"),))
        with pytest.raises(BuildEnvironmentError, match="compiled probe"):
            run_probes(config, catalog, scan_header=True)

    def test_unreadable_header(self, tmp_path):
        config = SdkConfig(header=str(tmp_path / "atcore.h"), library="libatcore.so")
        with pytest.raises(BuildEnvironmentError, match="Cannot read"):
            open_header_probe(config)
