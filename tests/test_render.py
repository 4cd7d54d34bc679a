"""Tests for orthographic globe rendering."""

from __future__ import annotations

import math
from pathlib import Path
from typing import Any

import pytest
from shapely.geometry import Point

from globeview.config import MarkerStyle, RenderConfig
from globeview.countries import CountryIndex
from globeview.ingest import PolygonIngestor
from globeview.markers import MarkerController
from globeview.render import (
    EARTH_RADIUS_M,
    GlobeRenderer,
    split_visible_runs,
    visible_half_extent_m,
)
from globeview.viewer import DataSource, GlobeViewer, MarkerEntity

_PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


@pytest.fixture()
def renderer() -> GlobeRenderer:
    return GlobeRenderer(RenderConfig(width_px=240, height_px=160, dpi=40))


@pytest.fixture()
def populated_viewer(viewer: GlobeViewer, sample_collection: dict[str, Any]) -> GlobeViewer:
    fill_ds, border_ds, _ = PolygonIngestor(CountryIndex()).ingest(sample_collection)
    viewer.add_data_source(fill_ds)
    viewer.add_data_source(border_ds)
    return viewer


class TestProjectionHelpers:
    def test_half_extent_capped_at_radius(self) -> None:
        assert visible_half_extent_m(26_000_000.0) == EARTH_RADIUS_M

    def test_half_extent_close_to_ground(self) -> None:
        assert visible_half_extent_m(1_000_000.0) == pytest.approx(
            1_000_000.0 * math.tan(math.radians(30.0))
        )

    def test_split_visible_runs(self) -> None:
        points = [(0.0, 0.0), (1.0, 1.0), None, (2.0, 2.0), None, (3.0, 3.0), (4.0, 4.0), (5.0, 5.0)]
        assert split_visible_runs(points) == [
            [(0.0, 0.0), (1.0, 1.0)],
            [(3.0, 3.0), (4.0, 4.0), (5.0, 5.0)],
        ]

    def test_split_visible_runs_all_hidden(self) -> None:
        assert split_visible_runs([None, None]) == []


class TestGlobeRenderer:
    def test_renders_png_with_countries(
        self, renderer: GlobeRenderer, populated_viewer: GlobeViewer, tmp_path: Path
    ) -> None:
        output = tmp_path / "nested" / "globe.png"
        result = renderer.render(populated_viewer, output)
        assert result.path == output
        assert output.read_bytes()[:8] == _PNG_MAGIC
        assert result.fills > 0
        assert result.borders > 0
        assert result.markers == 0

    def test_hidden_sources_are_skipped(
        self, renderer: GlobeRenderer, populated_viewer: GlobeViewer, tmp_path: Path
    ) -> None:
        for source in populated_viewer.data_sources:
            source.show = False
        result = renderer.render(populated_viewer, tmp_path / "empty.png")
        assert (result.fills, result.borders, result.markers) == (0, 0, 0)

    def test_far_side_marker_not_drawn(
        self, renderer: GlobeRenderer, viewer: GlobeViewer, tmp_path: Path
    ) -> None:
        source = viewer.add_data_source(DataSource("Manual Markers"))
        source.entities.add(
            MarkerEntity(position=Point(180.0, -20.0), title="Antipode", description="", style=MarkerStyle())
        )
        result = renderer.render(viewer, tmp_path / "far.png")
        assert result.markers == 0

    def test_placed_marker_is_drawn(
        self,
        renderer: GlobeRenderer,
        populated_viewer: GlobeViewer,
        presenter,
        tmp_path: Path,
    ) -> None:
        controller = MarkerController(populated_viewer, CountryIndex(), presenter=presenter)
        controller.place_at(2.0, 46.0, "France", "ISO-2: FR")
        result = renderer.render(populated_viewer, tmp_path / "marker.png")
        assert result.markers == 1
        assert result.fills > 0
