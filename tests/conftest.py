"""Shared pytest fixtures for the globeview test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from globeview.config import ViewerConfig
from globeview.countries import CountryIndex
from globeview.ingest import PolygonIngestor
from globeview.viewer import GlobeViewer

# ---------------------------------------------------------------------------
# Path fixtures
# ---------------------------------------------------------------------------

TESTS_DIR = Path(__file__).parent
DATA_DIR = TESTS_DIR / "data"
REPO_ROOT = TESTS_DIR.parent


@pytest.fixture()
def data_dir() -> Path:
    """Return the path to the test data directory."""
    return DATA_DIR


@pytest.fixture()
def sample_geojson(data_dir: Path) -> Path:
    """Eight features: four countries, a duplicate, a point, a null geometry, a bad ring."""
    return data_dir / "countries_sample.geojson"


@pytest.fixture()
def sample_collection(sample_geojson: Path) -> dict[str, Any]:
    with sample_geojson.open("r", encoding="utf-8") as fh:
        return json.load(fh)


# ---------------------------------------------------------------------------
# Scene fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def viewer() -> GlobeViewer:
    return GlobeViewer(ViewerConfig())


@pytest.fixture()
def loaded_index(sample_collection: dict[str, Any]) -> CountryIndex:
    index = CountryIndex()
    PolygonIngestor(index).ingest(sample_collection)
    return index


class RecordingPresenter:
    """Collects popups and alerts instead of showing them."""

    def __init__(self) -> None:
        self.popups: list[tuple[str, str]] = []
        self.alerts: list[str] = []

    def show(self, title: str, description: str) -> None:
        self.popups.append((title, description))

    def alert(self, message: str) -> None:
        self.alerts.append(message)


@pytest.fixture()
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture()
def config_file(tmp_path: Path, sample_geojson: Path) -> Path:
    """Minimal config pointing at the sample data, writing into tmp_path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        "\n".join(
            [
                "paths:",
                f"  countries_geojson: {sample_geojson.as_posix()}",
                "  output_dir: out",
                "  logs_dir: logs",
                "render:",
                "  width_px: 300",
                "  height_px: 200",
                "  dpi: 50",
                "",
            ]
        ),
        encoding="utf-8",
    )
    return cfg
