"""
Tests for package imports.

These tests verify the public API is correctly exported.
"""
import logging


class TestPackageImports:
    """Tests for importing the atgen package."""

    def test_version(self):
        """Package has version string."""
        from atgen import __version__
        assert __version__ == "1.0.0"

    def test_all_names_are_exported(self):
        """Every name in __all__ exists."""
        import atgen
        for name in atgen.__all__:
            assert hasattr(atgen, name), name

    def test_import_entry_points(self):
        """The probers and the emitter are importable from the package."""
        from atgen import generate, render, run_probes, SdkConfig
        assert callable(generate)
        assert callable(render)
        assert callable(run_probes)
        assert hasattr(SdkConfig, "from_environment")


class TestExceptions:
    """Tests for the exception hierarchy."""

    def test_hierarchy(self):
        from atgen import AtgenError, BuildEnvironmentError, OutputError
        assert issubclass(BuildEnvironmentError, AtgenError)
        assert issubclass(OutputError, AtgenError)

    def test_message(self):
        from atgen import OutputError
        error = OutputError("disk full")
        assert error.message == "disk full"
        assert str(error) == "disk full"


class TestLogging:
    """Tests for the library logger."""

    def test_silent_by_default(self):
        """The library installs only a NullHandler."""
        import atgen  # noqa: F401
        logger = logging.getLogger("atgen")
        assert any(isinstance(h, logging.NullHandler) for h in logger.handlers)

    def test_child_loggers(self):
        from atgen._logging import get_logger
        assert get_logger("probe").name == "atgen.probe"
        assert get_logger("header").parent is logging.getLogger("atgen")

    def test_configure_replaces_handler(self):
        """Configuring twice leaves a single stream handler next to the NullHandler."""
        from atgen._logging import configure_logging, reset_logging
        logger = logging.getLogger("atgen")
        try:
            configure_logging(level=logging.DEBUG)
            configure_logging()
            streams = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]
            assert len(streams) == 1
            assert logger.level == logging.WARNING
        finally:
            reset_logging()
        assert all(isinstance(h, logging.NullHandler) for h in logger.handlers)
