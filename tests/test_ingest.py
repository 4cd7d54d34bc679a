"""Tests for country polygon ingestion and the background loader."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from globeview.countries import CountryIndex
from globeview.ingest import (
    CountryLoader,
    IngestReport,
    PolygonIngestor,
    format_ingest_lines,
    run_ingestion,
)
from globeview.io_geojson import GeoJsonRepository
from globeview.viewer import (
    BORDER_SOURCE_NAME,
    FILL_SOURCE_NAME,
    GlobeViewer,
    PolygonEntity,
    PolylineEntity,
)


def _feature(name: str, geometry: dict[str, Any] | None, **props: Any) -> dict[str, Any]:
    return {"type": "Feature", "properties": {"name": name, **props}, "geometry": geometry}


class TestPolygonIngestor:
    def test_summary_counts(self, sample_collection: dict[str, Any]) -> None:
        index = CountryIndex()
        _, _, report = PolygonIngestor(index).ingest(sample_collection)
        assert report.summary == {
            "features": 8,
            "features_skipped": 2,
            "ring_sets": 7,
            "ring_sets_rendered": 6,
            "rings_rejected_invalid": 1,
            "rings_rejected_too_large": 0,
            "indexed": 4,
            "duplicates_ignored": 2,
        }

    def test_entities_per_rendered_ring_set(self, sample_collection: dict[str, Any]) -> None:
        fill_ds, border_ds, _ = PolygonIngestor(CountryIndex()).ingest(sample_collection)
        assert fill_ds.name == FILL_SOURCE_NAME
        assert border_ds.name == BORDER_SOURCE_NAME
        assert len(fill_ds.entities) == 6
        assert len(border_ds.entities) == 6
        assert all(isinstance(e, PolygonEntity) for e in fill_ds.entities)
        assert all(isinstance(e, PolylineEntity) for e in border_ds.entities)

    def test_duplicate_names_still_rendered(self, sample_collection: dict[str, Any]) -> None:
        fill_ds, _, _ = PolygonIngestor(CountryIndex()).ingest(sample_collection)
        names = [entity.name for entity in fill_ds.entities]
        assert names.count("France") == 2
        assert "FRANCE" in names

    def test_first_multipolygon_part_sets_centroid(self, loaded_index: CountryIndex) -> None:
        france = loaded_index.lookup("france")
        assert france is not None
        assert france.lon == pytest.approx(1.5)
        assert france.lat == pytest.approx(46.5)
        assert (france.iso2, france.iso3) == ("FR", "FRA")

    def test_largest_ring_chosen_over_source_order(self, loaded_index: CountryIndex) -> None:
        dominican = loaded_index.lookup("republica dominicana")
        assert dominican is not None
        assert dominican.display_name == "República Dominicana"
        assert dominican.lon == pytest.approx(-70.15)
        assert dominican.lat == pytest.approx(18.75)

    def test_skipped_features_not_indexed(self, loaded_index: CountryIndex) -> None:
        assert loaded_index.lookup("Paris") is None
        assert loaded_index.lookup("Nowhere") is None
        assert loaded_index.lookup("Atlantis") is None
        assert loaded_index.display_names() == [
            "France",
            "Franche-Comté",
            "República Dominicana",
            "South Africa",
        ]

    def test_rendered_ring_is_closed_outer_ring(self, sample_collection: dict[str, Any]) -> None:
        fill_ds, _, _ = PolygonIngestor(CountryIndex()).ingest(sample_collection)
        dominican = next(e for e in fill_ds.entities if e.name == "República Dominicana")
        coords = list(dominican.geometry.exterior.coords)
        assert coords[0] == coords[-1] == (-72.0, 17.5)
        assert dominican.geometry.area == pytest.approx(9.25)

    def test_missing_name_defaults(self) -> None:
        collection = {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "properties": {},
                    "geometry": {
                        "type": "Polygon",
                        "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]],
                    },
                }
            ],
        }
        index = CountryIndex()
        PolygonIngestor(index).ingest(collection)
        assert index.display_names() == ["Country"]

    def test_max_ring_points_is_configurable(self) -> None:
        square = [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]
        collection = {"features": [_feature("Tiny", {"type": "Polygon", "coordinates": [square]})]}
        index = CountryIndex()
        _, _, report = PolygonIngestor(index, max_ring_points=4).ingest(collection)
        assert report.summary["rings_rejected_too_large"] == 1
        assert len(index) == 0

    def test_features_must_be_a_list(self) -> None:
        with pytest.raises(ValueError, match="features"):
            PolygonIngestor(CountryIndex()).ingest({"features": {"not": "a list"}})

    def test_empty_collection(self) -> None:
        fill_ds, border_ds, report = PolygonIngestor(CountryIndex()).ingest({"features": []})
        assert len(fill_ds.entities) == len(border_ds.entities) == 0
        assert report.ok


class TestRunIngestion:
    def test_success_attaches_data_sources(self, sample_geojson: Path, viewer: GlobeViewer) -> None:
        index = CountryIndex()
        report = run_ingestion(GeoJsonRepository(sample_geojson), PolygonIngestor(index), viewer)
        assert report.ok
        assert len(index) == 4
        assert viewer.get_data_source(FILL_SOURCE_NAME) is not None
        assert viewer.get_data_source(BORDER_SOURCE_NAME) is not None

    def test_missing_file_is_recovered(self, tmp_path: Path, viewer: GlobeViewer) -> None:
        index = CountryIndex()
        report = run_ingestion(
            GeoJsonRepository(tmp_path / "absent.geojson"), PolygonIngestor(index), viewer
        )
        assert not report.ok
        assert "absent.geojson" in report.errors[0]
        assert len(index) == 0
        assert viewer.data_sources == ()

    def test_malformed_json_is_recovered(self, tmp_path: Path, viewer: GlobeViewer) -> None:
        path = tmp_path / "broken.geojson"
        path.write_text('{"type": "FeatureCollection", "features": [', encoding="utf-8")
        report = run_ingestion(GeoJsonRepository(path), PolygonIngestor(CountryIndex()), viewer)
        assert not report.ok
        assert viewer.data_sources == ()

    def test_wrong_document_type_is_recovered(self, tmp_path: Path) -> None:
        path = tmp_path / "feature.geojson"
        path.write_text('{"type": "Feature", "geometry": null}', encoding="utf-8")
        report = run_ingestion(GeoJsonRepository(path), PolygonIngestor(CountryIndex()), None)
        assert not report.ok
        assert "FeatureCollection" in report.errors[0]

    def test_failure_keeps_existing_index_entries(self, tmp_path: Path, loaded_index: CountryIndex) -> None:
        report = run_ingestion(
            GeoJsonRepository(tmp_path / "absent.geojson"), PolygonIngestor(loaded_index), None
        )
        assert not report.ok
        assert len(loaded_index) == 4

    def test_oversized_coordinate_only_drops_its_ring(self, tmp_path: Path, viewer: GlobeViewer) -> None:
        huge = "1" + "0" * 400
        path = tmp_path / "huge.geojson"
        path.write_text(
            '{"type": "FeatureCollection", "features": ['
            '{"type": "Feature", "properties": {"name": "Good"}, "geometry": {"type": "Polygon",'
            ' "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]}},'
            '{"type": "Feature", "properties": {"name": "Bad"}, "geometry": {"type": "Polygon",'
            f' "coordinates": [[[0, 0], [{huge}, 0], [1, 1], [0, 0]]]}}}},'
            '{"type": "Feature", "properties": {"name": "Later"}, "geometry": {"type": "Polygon",'
            ' "coordinates": [[[5, 5], [6, 5], [6, 6], [5, 6], [5, 5]]]}}'
            "]}",
            encoding="utf-8",
        )
        index = CountryIndex()
        report = run_ingestion(GeoJsonRepository(path), PolygonIngestor(index), viewer)
        assert report.ok
        assert report.summary["rings_rejected_invalid"] == 1
        assert index.display_names() == ["Good", "Later"]
        fills = viewer.get_data_source(FILL_SOURCE_NAME)
        assert fills is not None
        assert len(fills.entities) == 2

    def test_empty_index_warns(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.geojson"
        path.write_text('{"type": "FeatureCollection", "features": []}', encoding="utf-8")
        report = run_ingestion(GeoJsonRepository(path), PolygonIngestor(CountryIndex()), None)
        assert report.ok
        assert report.warnings == ["No country names were indexed."]


class TestCountryLoader:
    def test_wait_returns_report_and_marks_ready(self, sample_geojson: Path, viewer: GlobeViewer) -> None:
        loader = CountryLoader(GeoJsonRepository(sample_geojson), PolygonIngestor(CountryIndex()), viewer)
        assert not loader.started
        assert not loader.ready
        report = loader.wait(timeout=30)
        assert loader.ready
        assert report.ok
        assert len(loader.index) == 4

    def test_start_runs_only_once(self, sample_geojson: Path) -> None:
        loader = CountryLoader(GeoJsonRepository(sample_geojson), PolygonIngestor(CountryIndex()))
        first = loader.start()
        second = loader.start()
        assert first is second
        assert loader.wait(timeout=30) is first.result()

    def test_failed_load_still_becomes_ready(self, tmp_path: Path) -> None:
        loader = CountryLoader(
            GeoJsonRepository(tmp_path / "absent.geojson"), PolygonIngestor(CountryIndex())
        )
        report = loader.wait(timeout=30)
        assert loader.ready
        assert not report.ok


class TestReportFormatting:
    def test_ok_report_lines(self) -> None:
        report = IngestReport(source="x")
        report.add_info("Loaded 0 features from x")
        lines = format_ingest_lines(report)
        assert lines[0] == "[INFO] Loaded 0 features from x"
        assert lines[1].startswith("[INFO] Summary: features=0")
        assert lines[-1] == "[OK] Country ingestion completed with no errors."

    def test_error_report_lines(self) -> None:
        report = IngestReport(source="x")
        report.add_error("boom")
        lines = format_ingest_lines(report)
        assert "[ERROR] boom" in lines
        assert not any(line.startswith("[OK]") for line in lines)
        assert report.to_dict()["ok"] is False
