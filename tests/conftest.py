"""Shared test configuration."""

import matplotlib
import pytest

# render charts off-screen
matplotlib.use("Agg")


@pytest.fixture(autouse=True)
def _env_isolation(tmp_path, monkeypatch):
    """Point data and chart output at temporary directories."""
    monkeypatch.setenv("ZENFIT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ZENFIT_OUTPUT_DIR", str(tmp_path / "output"))
    monkeypatch.delenv("ZENFIT_LOG_LEVEL", raising=False)
    yield
