"""In-process globe scene: data sources, entities, camera, and imagery."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Iterator, Sequence

from shapely.geometry import LineString, Point, Polygon

from .config import BorderStyle, FillStyle, MarkerStyle, ViewerConfig
from .models import LonLat


_LOGGER = logging.getLogger("globeview.viewer")

FILL_SOURCE_NAME = "Countries (Fill)"
BORDER_SOURCE_NAME = "Countries (Borders)"
MANUAL_MARKERS_SOURCE_NAME = "Manual Markers"


@dataclass(frozen=True, slots=True)
class PolygonEntity:
    """Ground-clamped filled polygon."""

    geometry: Polygon
    style: FillStyle
    name: str | None = None


@dataclass(frozen=True, slots=True)
class PolylineEntity:
    """Border line drawn along a ring."""

    geometry: LineString
    style: BorderStyle
    name: str | None = None


@dataclass(frozen=True, slots=True)
class MarkerEntity:
    """Point plus text label with a popup description."""

    position: Point
    title: str
    description: str
    style: MarkerStyle

    @property
    def lon(self) -> float:
        return float(self.position.x)

    @property
    def lat(self) -> float:
        return float(self.position.y)


def polygon_entity(ring: Sequence[LonLat], style: FillStyle, name: str | None = None) -> PolygonEntity:
    return PolygonEntity(geometry=Polygon(ring), style=style, name=name)


def polyline_entity(
    ring: Sequence[LonLat], style: BorderStyle, name: str | None = None
) -> PolylineEntity:
    return PolylineEntity(geometry=LineString(ring), style=style, name=name)


class EntityCollection:
    def __init__(self) -> None:
        self._items: list[Any] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[Any]:
        return iter(list(self._items))

    def add(self, entity: Any) -> Any:
        self._items.append(entity)
        return entity

    def remove_all(self) -> None:
        self._items.clear()

    def of_type(self, kind: type) -> list[Any]:
        return [item for item in self._items if isinstance(item, kind)]


@dataclass(slots=True)
class DataSource:
    name: str
    entities: EntityCollection = field(default_factory=EntityCollection)
    show: bool = True


@dataclass(frozen=True, slots=True)
class CameraFlight:
    lon: float
    lat: float
    height_m: float
    duration_s: float


class Camera:
    """Camera position over the ellipsoid; flights are requested, never awaited."""

    def __init__(self, lon: float, lat: float, height_m: float) -> None:
        self.lon = lon
        self.lat = lat
        self.height_m = height_m
        self.last_flight: CameraFlight | None = None

    def set_view(self, lon: float, lat: float, height_m: float) -> None:
        self.lon = lon
        self.lat = lat
        self.height_m = height_m

    def fly_to(self, lon: float, lat: float, height_m: float, duration_s: float) -> CameraFlight:
        flight = CameraFlight(lon=lon, lat=lat, height_m=height_m, duration_s=duration_s)
        self.last_flight = flight
        # Static renders only ever observe the destination.
        self.set_view(lon, lat, height_m)
        _LOGGER.debug("Camera flying to lon=%.4f lat=%.4f height=%.0f", lon, lat, height_m)
        return flight


@dataclass(frozen=True, slots=True)
class ImageryProvider:
    name: str
    url: str
    attribution: str


class GlobeViewer:
    """Scene model consumed by the renderer.

    Terrain is the bare WGS84 ellipsoid; no elevation data is used.
    """

    def __init__(self, cfg: ViewerConfig) -> None:
        self.cfg = cfg
        self.terrain = cfg.terrain
        self.imagery = resolve_imagery_provider(cfg.imagery_provider)
        view = cfg.initial_view
        self.camera = Camera(view.lon, view.lat, view.height_m)
        self._lock = threading.Lock()
        self._data_sources: list[DataSource] = []

    @property
    def data_sources(self) -> tuple[DataSource, ...]:
        with self._lock:
            return tuple(self._data_sources)

    def add_data_source(self, source: DataSource) -> DataSource:
        with self._lock:
            if any(existing is source for existing in self._data_sources):
                return source
            self._data_sources.append(source)
        _LOGGER.debug("Data source added: %s (%d entities)", source.name, len(source.entities))
        return source

    def get_data_source(self, name: str) -> DataSource | None:
        with self._lock:
            for source in self._data_sources:
                if source.name == name:
                    return source
        return None


def resolve_imagery_provider(name: str) -> ImageryProvider:
    providers = _require_xyzservices_providers()
    try:
        provider = providers.query_name(name)
    except ValueError as exc:
        raise ValueError(f"Unknown imagery provider '{name}'") from exc
    return ImageryProvider(
        name=str(provider.name),
        url=str(provider.build_url()),
        attribution=str(provider.get("attribution", "")),
    )


@lru_cache(maxsize=1)
def _require_xyzservices_providers() -> Any:
    try:
        from xyzservices import providers
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("xyzservices is required to resolve imagery providers") from exc
    return providers
