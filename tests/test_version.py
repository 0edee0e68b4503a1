"""Tests for dynamic version management.

Verifies that ``impulse_ledger.__version__`` is resolved from the package
metadata and that the FastAPI app and the root ``/`` endpoint agree with it.
"""

from __future__ import annotations

import re

import pytest

import impulse_ledger

# Matches semver-ish strings: major.minor.patch with optional pre-release
# suffix (e.g. "0.1.0", "1.0.0-rc.1").
_SEMVER_RE = re.compile(r"^\d+\.\d+\.\d+(-[A-Za-z0-9]+(\.[A-Za-z0-9]+)*)?$")


@pytest.mark.unit
class TestVersionAttribute:
    """Verify the ``impulse_ledger.__version__`` package attribute."""

    def test_version_is_a_string(self) -> None:
        assert isinstance(impulse_ledger.__version__, str)
        assert impulse_ledger.__version__

    def test_version_matches_semver(self) -> None:
        assert _SEMVER_RE.match(impulse_ledger.__version__)


@pytest.mark.unit
class TestVersionInApp:
    """Verify version consistency across the FastAPI app surfaces."""

    def test_openapi_version_matches_package(self) -> None:
        from impulse_ledger.api.server import create_app

        assert create_app().version == impulse_ledger.__version__

    @pytest.mark.api
    def test_root_endpoint_reports_version(self, test_client) -> None:
        response = test_client.get("/")

        assert response.json()["version"] == impulse_ledger.__version__
