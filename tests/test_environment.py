"""Tests for runtime and environment reporting, and logging setup."""

import logging
from importlib.metadata import PackageNotFoundError
from unittest.mock import patch

from rich.logging import RichHandler

from storediag.environment import REPORTED_PACKAGES, package_version, runtime_info, sanitized_environment
from storediag.logging_setup import LOGGER_NAME, setup_logging
from storediag.models import OptionSpec


class TestRuntimeInfo:
    """Tests for runtime_info."""

    def test_names(self):
        """Python and platform come first, then each reported package."""
        names = [name for name, _ in runtime_info()]
        assert names[:3] == ["python", "executable", "platform"]
        assert names[3:] == list(REPORTED_PACKAGES)

    def test_missing_package(self):
        """Uninstalled packages are reported, not raised."""
        with patch("storediag.environment.version", side_effect=PackageNotFoundError("x")):
            assert package_version("x") == "(not installed)"


class TestSanitizedEnvironment:
    """Tests for sanitized_environment."""

    def test_redaction(self):
        """Sensitive variables are masked; missing ones are unset."""
        specs = (
            OptionSpec("AWS_SECRET_ACCESS_KEY", True),
            OptionSpec("AWS_REGION"),
            OptionSpec("AWS_PROFILE"),
        )
        environ = {"AWS_SECRET_ACCESS_KEY": "secret", "AWS_REGION": "eu-west-1"}

        values = sanitized_environment(specs, environ)

        assert [(v.key, v.value) for v in values] == [
            ("AWS_SECRET_ACCESS_KEY", "s****t"),
            ("AWS_REGION", "eu-west-1"),
            ("AWS_PROFILE", "(unset)"),
        ]
        assert values[0].sensitive is True


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_levels(self):
        """Verbose logs INFO, otherwise WARNING."""
        assert setup_logging(verbose=True).level == logging.INFO
        assert setup_logging(verbose=False).level == logging.WARNING

    def test_single_rich_handler(self):
        """Repeated setup does not stack handlers."""
        setup_logging()
        setup_logging()

        logger = logging.getLogger(LOGGER_NAME)
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
        assert logger.propagate is False
