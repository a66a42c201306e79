"""Runtime and environment information for the report header."""

import os
import platform
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import Mapping, Optional, Sequence

from storediag.config import UNSET
from storediag.models import OptionSpec, OptionValue
from storediag.sanitizer import redact

# Distributions whose versions affect how stores are reached
REPORTED_PACKAGES = ("storediag", "boto3", "botocore", "httpx", "rich")


def package_version(name: str) -> str:
    try:
        return version(name)
    except PackageNotFoundError:
        return "(not installed)"


def runtime_info() -> tuple[tuple[str, str], ...]:
    """Python, platform and library versions as (name, value) pairs."""
    info = [
        ("python", f"{platform.python_implementation()} {platform.python_version()}"),
        ("executable", sys.executable),
        ("platform", platform.platform()),
    ]
    info.extend((name, package_version(name)) for name in REPORTED_PACKAGES)
    return tuple(info)


def sanitized_environment(
    specs: Sequence[OptionSpec],
    environ: Optional[Mapping[str, str]] = None,
) -> tuple[OptionValue, ...]:
    """Read and redact the named environment variables."""
    env = os.environ if environ is None else environ
    return tuple(
        OptionValue(spec.key, redact(env.get(spec.key, UNSET), spec.sensitive), spec.sensitive)
        for spec in specs
    )
