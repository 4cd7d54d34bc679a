"""Tests for GeoJSON source loading."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import requests

from globeview.io_geojson import GeoJsonRepository, feature_geometry_type, iter_polygon_ring_sets


class _FakeResponse:
    def __init__(self, payload: Any, status: int = 200) -> None:
        self._payload = payload
        self.status_code = status

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self) -> Any:
        return self._payload


class _FakeSession:
    def __init__(self, response: _FakeResponse) -> None:
        self.response = response
        self.calls: list[tuple[str, float]] = []

    def get(self, url: str, timeout: float) -> _FakeResponse:
        self.calls.append((url, timeout))
        return self.response


class TestGeoJsonRepository:
    def test_reads_local_file(self, sample_geojson: Path) -> None:
        repo = GeoJsonRepository(sample_geojson)
        assert not repo.is_remote
        doc = repo.load()
        assert doc["type"] == "FeatureCollection"
        assert len(doc["features"]) == 8

    def test_missing_local_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="GeoJSON file not found"):
            GeoJsonRepository(tmp_path / "missing.geojson").load()

    def test_untyped_object_accepted(self, tmp_path: Path) -> None:
        path = tmp_path / "bare.geojson"
        path.write_text(json.dumps({"features": []}), encoding="utf-8")
        assert GeoJsonRepository(path).load() == {"features": []}

    def test_non_object_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "list.geojson"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ValueError, match="JSON object"):
            GeoJsonRepository(path).load()

    def test_fetches_remote_with_timeout(self) -> None:
        session = _FakeSession(_FakeResponse({"type": "FeatureCollection", "features": []}))
        repo = GeoJsonRepository(
            "HTTPS://example.org/countries.geojson",
            request_timeout_s=5.0,
            session=session,  # type: ignore[arg-type]
        )
        assert repo.is_remote
        assert repo.load()["features"] == []
        assert session.calls == [("HTTPS://example.org/countries.geojson", 5.0)]

    def test_remote_http_error_propagates(self) -> None:
        session = _FakeSession(_FakeResponse({}, status=404))
        repo = GeoJsonRepository("https://example.org/x.geojson", session=session)  # type: ignore[arg-type]
        with pytest.raises(requests.HTTPError):
            repo.load()


class TestFeatureHelpers:
    def test_polygon_yields_one_ring_set(self) -> None:
        rings = [[[0, 0], [1, 0], [1, 1], [0, 0]]]
        feature = {"geometry": {"type": "Polygon", "coordinates": rings}}
        assert list(iter_polygon_ring_sets(feature)) == [rings]
        assert feature_geometry_type(feature) == "Polygon"

    def test_multipolygon_yields_each_part(self, sample_collection: dict[str, Any]) -> None:
        france = sample_collection["features"][0]
        assert feature_geometry_type(france) == "MultiPolygon"
        assert len(list(iter_polygon_ring_sets(france))) == 2

    @pytest.mark.parametrize(
        "feature",
        [None, "x", {}, {"geometry": None}, {"geometry": {"type": "Point", "coordinates": [0, 0]}}],
    )
    def test_non_polygon_features_yield_nothing(self, feature: Any) -> None:
        assert list(iter_polygon_ring_sets(feature)) == []
