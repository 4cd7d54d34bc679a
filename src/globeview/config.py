"""Typed configuration loader for `config.yaml`."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, cast

import yaml

from .models import PropertyMapping


def _mapping(value: Any, field_name: str) -> Mapping[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise ValueError(f"Expected mapping for '{field_name}'")
    return cast(Mapping[str, Any], value)


def _str(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected non-empty string for '{field_name}'")
    return value.strip()


def _int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Expected integer for '{field_name}'")
    return value


def _float(value: Any, field_name: str) -> float:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    raise ValueError(f"Expected float for '{field_name}'")


def _bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"Expected bool for '{field_name}'")
    return value


def _positive(value: float, field_name: str) -> float:
    if value <= 0:
        raise ValueError(f"{field_name} must be > 0")
    return value


def _path_from_cfg(value: Any, field_name: str, root_dir: Path) -> Path:
    raw = _str(value, field_name)
    p = Path(raw)
    return p if p.is_absolute() else root_dir / p


def _is_url(value: str) -> bool:
    return value.casefold().startswith(("http://", "https://"))


@dataclass(frozen=True, slots=True)
class PathsConfig:
    countries_geojson: str
    output_dir: Path
    logs_dir: Path

    @property
    def build_directories(self) -> tuple[Path, ...]:
        return (self.output_dir, self.logs_dir)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], root_dir: Path) -> PathsConfig:
        source = _str(
            raw.get("countries_geojson", "data/map_simplified.geojson"),
            "paths.countries_geojson",
        )
        if not _is_url(source):
            source = str(_path_from_cfg(source, "paths.countries_geojson", root_dir))
        return cls(
            countries_geojson=source,
            output_dir=_path_from_cfg(
                raw.get("output_dir", "build/globe"), "paths.output_dir", root_dir
            ),
            logs_dir=_path_from_cfg(raw.get("logs_dir", "build/logs"), "paths.logs_dir", root_dir),
        )


@dataclass(frozen=True, slots=True)
class DataConfig:
    request_timeout_s: float = 30.0
    user_agent: str = "globeview/0.1"
    properties: PropertyMapping = field(default_factory=PropertyMapping)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> DataConfig:
        return cls(
            request_timeout_s=_positive(
                _float(raw.get("request_timeout_s", 30.0), "data.request_timeout_s"),
                "data.request_timeout_s",
            ),
            user_agent=_str(raw.get("user_agent", "globeview/0.1"), "data.user_agent"),
            properties=PropertyMapping.from_mapping(
                _mapping(raw.get("properties"), "data.properties")
            ),
        )


@dataclass(frozen=True, slots=True)
class IngestConfig:
    max_ring_points: int = 2000
    ready_timeout_s: float = 60.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> IngestConfig:
        max_ring_points = _int(raw.get("max_ring_points", 2000), "ingest.max_ring_points")
        if max_ring_points < 4:
            raise ValueError("ingest.max_ring_points must be >= 4")
        return cls(
            max_ring_points=max_ring_points,
            ready_timeout_s=_positive(
                _float(raw.get("ready_timeout_s", 60.0), "ingest.ready_timeout_s"),
                "ingest.ready_timeout_s",
            ),
        )


@dataclass(frozen=True, slots=True)
class CameraViewConfig:
    lon: float
    lat: float
    height_m: float

    @classmethod
    def from_mapping(
        cls, raw: Mapping[str, Any], field_name: str, default: CameraViewConfig
    ) -> CameraViewConfig:
        lon = _float(raw.get("lon", default.lon), f"{field_name}.lon")
        lat = _float(raw.get("lat", default.lat), f"{field_name}.lat")
        if lon < -180.0 or lon > 180.0:
            raise ValueError(f"{field_name}.lon must be between -180 and 180")
        if lat < -90.0 or lat > 90.0:
            raise ValueError(f"{field_name}.lat must be between -90 and 90")
        return cls(
            lon=lon,
            lat=lat,
            height_m=_positive(
                _float(raw.get("height_m", default.height_m), f"{field_name}.height_m"),
                f"{field_name}.height_m",
            ),
        )


_DEFAULT_INITIAL_VIEW = CameraViewConfig(lon=0.0, lat=20.0, height_m=26_000_000.0)


@dataclass(frozen=True, slots=True)
class FlyToConfig:
    height_m: float = 2_500_000.0
    duration_s: float = 0.9

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> FlyToConfig:
        duration_s = _float(raw.get("duration_s", 0.9), "viewer.fly_to.duration_s")
        if duration_s < 0:
            raise ValueError("viewer.fly_to.duration_s must be >= 0")
        return cls(
            height_m=_positive(
                _float(raw.get("height_m", 2_500_000.0), "viewer.fly_to.height_m"),
                "viewer.fly_to.height_m",
            ),
            duration_s=duration_s,
        )


@dataclass(frozen=True, slots=True)
class ViewerConfig:
    imagery_provider: str = "OpenStreetMap.Mapnik"
    terrain: str = "ellipsoid"
    initial_view: CameraViewConfig = _DEFAULT_INITIAL_VIEW
    fly_to: FlyToConfig = field(default_factory=FlyToConfig)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> ViewerConfig:
        terrain = _str(raw.get("terrain", "ellipsoid"), "viewer.terrain").casefold()
        if terrain != "ellipsoid":
            raise ValueError("viewer.terrain must be 'ellipsoid'")
        return cls(
            imagery_provider=_str(
                raw.get("imagery_provider", "OpenStreetMap.Mapnik"), "viewer.imagery_provider"
            ),
            terrain=terrain,
            initial_view=CameraViewConfig.from_mapping(
                _mapping(raw.get("initial_view"), "viewer.initial_view"),
                "viewer.initial_view",
                _DEFAULT_INITIAL_VIEW,
            ),
            fly_to=FlyToConfig.from_mapping(_mapping(raw.get("fly_to"), "viewer.fly_to")),
        )


@dataclass(frozen=True, slots=True)
class FillStyle:
    color: str = "white"
    alpha: float = 1.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> FillStyle:
        return cls(
            color=_str(raw.get("color", "white"), "style.fill.color"),
            alpha=_float(raw.get("alpha", 1.0), "style.fill.alpha"),
        )


@dataclass(frozen=True, slots=True)
class BorderStyle:
    color: str = "black"
    alpha: float = 1.0
    width: float = 1.5
    clamp_to_ground: bool = True

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> BorderStyle:
        return cls(
            color=_str(raw.get("color", "black"), "style.border.color"),
            alpha=_float(raw.get("alpha", 1.0), "style.border.alpha"),
            width=_positive(_float(raw.get("width", 1.5), "style.border.width"), "style.border.width"),
            clamp_to_ground=_bool(raw.get("clamp_to_ground", True), "style.border.clamp_to_ground"),
        )


@dataclass(frozen=True, slots=True)
class PointStyle:
    pixel_size: int = 10
    color: str = "red"
    alpha: float = 0.95
    outline_color: str = "black"
    outline_alpha: float = 0.9
    outline_width: float = 2.0

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> PointStyle:
        return cls(
            pixel_size=_int(raw.get("pixel_size", 10), "style.marker.point.pixel_size"),
            color=_str(raw.get("color", "red"), "style.marker.point.color"),
            alpha=_float(raw.get("alpha", 0.95), "style.marker.point.alpha"),
            outline_color=_str(
                raw.get("outline_color", "black"), "style.marker.point.outline_color"
            ),
            outline_alpha=_float(raw.get("outline_alpha", 0.9), "style.marker.point.outline_alpha"),
            outline_width=_float(raw.get("outline_width", 2.0), "style.marker.point.outline_width"),
        )


@dataclass(frozen=True, slots=True)
class LabelStyle:
    font_family: str = "sans-serif"
    font_size_px: int = 14
    outline_width: float = 3.0
    pixel_offset: tuple[int, int] = (0, -12)
    show_background: bool = True
    background_padding: tuple[int, int] = (6, 4)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> LabelStyle:
        return cls(
            font_family=_str(raw.get("font_family", "sans-serif"), "style.marker.label.font_family"),
            font_size_px=_int(raw.get("font_size_px", 14), "style.marker.label.font_size_px"),
            outline_width=_float(raw.get("outline_width", 3.0), "style.marker.label.outline_width"),
            pixel_offset=_int_pair(
                raw.get("pixel_offset", [0, -12]), "style.marker.label.pixel_offset"
            ),
            show_background=_bool(
                raw.get("show_background", True), "style.marker.label.show_background"
            ),
            background_padding=_int_pair(
                raw.get("background_padding", [6, 4]), "style.marker.label.background_padding"
            ),
        )


def _int_pair(value: Any, field_name: str) -> tuple[int, int]:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValueError(f"Expected two-item list for '{field_name}'")
    return (_int(value[0], f"{field_name}[0]"), _int(value[1], f"{field_name}[1]"))


@dataclass(frozen=True, slots=True)
class MarkerStyle:
    point: PointStyle = field(default_factory=PointStyle)
    label: LabelStyle = field(default_factory=LabelStyle)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> MarkerStyle:
        return cls(
            point=PointStyle.from_mapping(_mapping(raw.get("point"), "style.marker.point")),
            label=LabelStyle.from_mapping(_mapping(raw.get("label"), "style.marker.label")),
        )


@dataclass(frozen=True, slots=True)
class StyleConfig:
    fill: FillStyle = field(default_factory=FillStyle)
    border: BorderStyle = field(default_factory=BorderStyle)
    marker: MarkerStyle = field(default_factory=MarkerStyle)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> StyleConfig:
        return cls(
            fill=FillStyle.from_mapping(_mapping(raw.get("fill"), "style.fill")),
            border=BorderStyle.from_mapping(_mapping(raw.get("border"), "style.border")),
            marker=MarkerStyle.from_mapping(_mapping(raw.get("marker"), "style.marker")),
        )


@dataclass(frozen=True, slots=True)
class RenderConfig:
    width_px: int = 1200
    height_px: int = 1200
    dpi: int = 100
    background: str = "#05070d"
    ocean_color: str = "#a9c9e6"
    output_name: str = "globe.png"

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> RenderConfig:
        width_px = _int(raw.get("width_px", 1200), "render.width_px")
        height_px = _int(raw.get("height_px", 1200), "render.height_px")
        dpi = _int(raw.get("dpi", 100), "render.dpi")
        if width_px <= 0 or height_px <= 0 or dpi <= 0:
            raise ValueError("render.width_px, render.height_px and render.dpi must be > 0")
        return cls(
            width_px=width_px,
            height_px=height_px,
            dpi=dpi,
            background=_str(raw.get("background", "#05070d"), "render.background"),
            ocean_color=_str(raw.get("ocean_color", "#a9c9e6"), "render.ocean_color"),
            output_name=_str(raw.get("output_name", "globe.png"), "render.output_name"),
        )


@dataclass(frozen=True, slots=True)
class SuggestionsConfig:
    limit: int = 10

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> SuggestionsConfig:
        limit = _int(raw.get("limit", 10), "suggestions.limit")
        if limit < 1:
            raise ValueError("suggestions.limit must be >= 1")
        return cls(limit=limit)


@dataclass(frozen=True, slots=True)
class AppConfig:
    source_path: Path
    paths: PathsConfig
    data: DataConfig
    ingest: IngestConfig
    viewer: ViewerConfig
    style: StyleConfig
    render: RenderConfig
    suggestions: SuggestionsConfig

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any], source_path: Path) -> AppConfig:
        root_dir = source_path.parent.resolve()
        return cls(
            source_path=source_path.resolve(),
            paths=PathsConfig.from_mapping(_mapping(raw.get("paths"), "paths"), root_dir),
            data=DataConfig.from_mapping(_mapping(raw.get("data"), "data")),
            ingest=IngestConfig.from_mapping(_mapping(raw.get("ingest"), "ingest")),
            viewer=ViewerConfig.from_mapping(_mapping(raw.get("viewer"), "viewer")),
            style=StyleConfig.from_mapping(_mapping(raw.get("style"), "style")),
            render=RenderConfig.from_mapping(_mapping(raw.get("render"), "render")),
            suggestions=SuggestionsConfig.from_mapping(
                _mapping(raw.get("suggestions"), "suggestions")
            ),
        )


def load_config(path: str | Path) -> AppConfig:
    """Load and validate the YAML config file into typed settings."""
    cfg_path = Path(path).resolve()
    if not cfg_path.exists():
        raise FileNotFoundError(f"Config file not found: {cfg_path}")
    with cfg_path.open("r", encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    if raw is None:
        raw = {}
    if not isinstance(raw, Mapping):
        raise ValueError("Top-level config must be a YAML mapping")
    return AppConfig.from_mapping(cast(Mapping[str, Any], raw), cfg_path)
