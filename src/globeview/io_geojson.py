"""GeoJSON source loading interfaces."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterator, Mapping

import requests


_LOGGER = logging.getLogger("globeview.io_geojson")

POLYGON_TYPES = ("Polygon", "MultiPolygon")


class GeoJsonRepository:
    """Reads one FeatureCollection from a local path or an http(s) URL."""

    def __init__(
        self,
        source: str | Path,
        *,
        request_timeout_s: float = 30.0,
        user_agent: str = "globeview/0.1",
        session: requests.Session | None = None,
    ) -> None:
        self.source = str(source)
        self.request_timeout_s = request_timeout_s
        self._session = session
        self._user_agent = user_agent

    @property
    def is_remote(self) -> bool:
        return self.source.casefold().startswith(("http://", "https://"))

    def load(self) -> Mapping[str, Any]:
        """Fetch and decode the document, checking it is a FeatureCollection."""
        raw = self._fetch_remote() if self.is_remote else self._read_local()
        if not isinstance(raw, Mapping):
            raise ValueError(f"Expected a JSON object in {self.source}")
        doc_type = raw.get("type")
        if doc_type is not None and doc_type != "FeatureCollection":
            raise ValueError(f"Expected a FeatureCollection in {self.source}, got '{doc_type}'")
        return raw

    def _read_local(self) -> Any:
        path = Path(self.source)
        if not path.exists():
            raise FileNotFoundError(f"GeoJSON file not found: {path}")
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)

    def _fetch_remote(self) -> Any:
        session = self._session
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": self._user_agent})
            self._session = session
        _LOGGER.debug("Fetching %s", self.source)
        response = session.get(self.source, timeout=self.request_timeout_s)
        response.raise_for_status()
        return response.json()


def iter_polygon_ring_sets(feature: Any) -> Iterator[Any]:
    """Yield the ring-sets of a Polygon/MultiPolygon feature, nothing otherwise."""
    if not isinstance(feature, Mapping):
        return
    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        return
    geom_type = geometry.get("type")
    coordinates = geometry.get("coordinates") or []
    if geom_type == "Polygon":
        yield coordinates
    elif geom_type == "MultiPolygon":
        if isinstance(coordinates, list):
            yield from coordinates


def feature_geometry_type(feature: Any) -> str | None:
    if not isinstance(feature, Mapping):
        return None
    geometry = feature.get("geometry")
    if not isinstance(geometry, Mapping):
        return None
    geom_type = geometry.get("type")
    return geom_type if isinstance(geom_type, str) else None
