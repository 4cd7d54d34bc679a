"""Orthographic globe rendering of a viewer scene to PNG."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Sequence

from .config import RenderConfig
from .viewer import Camera, GlobeViewer, MarkerEntity, PolygonEntity, PolylineEntity


_LOGGER = logging.getLogger("globeview.render")

EARTH_RADIUS_M = 6_378_137.0
_HALF_FOV_RAD = math.radians(30.0)

_XY = tuple[float, float]


@dataclass(frozen=True, slots=True)
class _OrthoProjection:
    """Orthographic view of the ellipsoid centered under the camera."""

    transformer: Any
    half_extent_m: float


@dataclass(frozen=True, slots=True)
class RenderResult:
    path: Path
    fills: int
    borders: int
    markers: int


class GlobeRenderer:
    """Deterministic renderer for one globe snapshot."""

    def __init__(self, cfg: RenderConfig) -> None:
        self.cfg = cfg

    def render(self, viewer: GlobeViewer, output_path: Path) -> RenderResult:
        plt, colors, patheffects = _require_matplotlib()
        projection = _build_projection(viewer.camera)
        dpi = self.cfg.dpi
        fig, ax = plt.subplots(figsize=(self.cfg.width_px / dpi, self.cfg.height_px / dpi), dpi=dpi)
        fig.subplots_adjust(left=0.0, right=1.0, bottom=0.0, top=1.0)
        counts = {"fills": 0, "borders": 0, "markers": 0}

        try:
            fig.patch.set_facecolor(self.cfg.background)
            ax.set_facecolor(self.cfg.background)
            ax.set_axis_off()
            ax.set_aspect("equal")
            half = projection.half_extent_m
            aspect = self.cfg.width_px / self.cfg.height_px
            ax.set_xlim(-half * max(aspect, 1.0), half * max(aspect, 1.0))
            ax.set_ylim(-half / min(aspect, 1.0), half / min(aspect, 1.0))

            ax.add_patch(
                plt.Circle((0.0, 0.0), EARTH_RADIUS_M, color=self.cfg.ocean_color, zorder=0)
            )

            for source in viewer.data_sources:
                if not source.show:
                    continue
                for entity in source.entities:
                    if isinstance(entity, PolygonEntity):
                        if _draw_fill(ax, entity, projection, colors):
                            counts["fills"] += 1
                    elif isinstance(entity, PolylineEntity):
                        if _draw_border(ax, entity, projection, colors):
                            counts["borders"] += 1
                    elif isinstance(entity, MarkerEntity):
                        if _draw_marker(ax, entity, projection, colors, patheffects):
                            counts["markers"] += 1

            if viewer.imagery.attribution:
                ax.text(
                    0.99,
                    0.01,
                    viewer.imagery.attribution,
                    transform=ax.transAxes,
                    ha="right",
                    va="bottom",
                    fontsize=7,
                    color="#cccccc",
                    zorder=10,
                )

            output_path.parent.mkdir(parents=True, exist_ok=True)
            fig.savefig(output_path, dpi=dpi, facecolor=fig.get_facecolor())
        finally:
            plt.close(fig)

        _LOGGER.info(
            "Globe rendered to %s (fills=%d borders=%d markers=%d)",
            output_path,
            counts["fills"],
            counts["borders"],
            counts["markers"],
        )
        return RenderResult(path=output_path, **counts)


def visible_half_extent_m(height_m: float) -> float:
    """Half-width of the visible ground window for a camera altitude."""
    return min(EARTH_RADIUS_M, height_m * math.tan(_HALF_FOV_RAD))


def project_ring(
    coords: Sequence[tuple[float, float]], projection: _OrthoProjection
) -> list[_XY | None]:
    """Project lon/lat points; points on the far hemisphere become None."""
    lons = [float(lon) for lon, _ in coords]
    lats = [float(lat) for _, lat in coords]
    xs, ys = projection.transformer.transform(lons, lats)
    out: list[_XY | None] = []
    for x, y in zip(xs, ys):
        if math.isfinite(x) and math.isfinite(y):
            out.append((float(x), float(y)))
        else:
            out.append(None)
    return out


def split_visible_runs(points: Sequence[_XY | None]) -> list[list[_XY]]:
    """Break a projected ring into runs of consecutive visible points."""
    runs: list[list[_XY]] = []
    current: list[_XY] = []
    for point in points:
        if point is None:
            if len(current) >= 2:
                runs.append(current)
            current = []
            continue
        current.append(point)
    if len(current) >= 2:
        runs.append(current)
    return runs


def _draw_fill(ax: Any, entity: PolygonEntity, projection: _OrthoProjection, colors: Any) -> bool:
    projected = project_ring(list(entity.geometry.exterior.coords), projection)
    visible = [point for point in projected if point is not None]
    if len(visible) < 3:
        return False
    ax.fill(
        [x for x, _ in visible],
        [y for _, y in visible],
        color=colors.to_rgba(entity.style.color, entity.style.alpha),
        linewidth=0,
        zorder=1,
    )
    return True


def _draw_border(ax: Any, entity: PolylineEntity, projection: _OrthoProjection, colors: Any) -> bool:
    runs = split_visible_runs(project_ring(list(entity.geometry.coords), projection))
    for run in runs:
        ax.plot(
            [x for x, _ in run],
            [y for _, y in run],
            color=colors.to_rgba(entity.style.color, entity.style.alpha),
            linewidth=entity.style.width,
            zorder=2,
            solid_joinstyle="round",
            solid_capstyle="round",
        )
    return bool(runs)


def _draw_marker(
    ax: Any,
    entity: MarkerEntity,
    projection: _OrthoProjection,
    colors: Any,
    patheffects: Any,
) -> bool:
    projected = project_ring([(entity.lon, entity.lat)], projection)[0]
    if projected is None:
        return False
    x, y = projected
    point = entity.style.point
    ax.scatter(
        [x],
        [y],
        s=point.pixel_size**2,
        c=[colors.to_rgba(point.color, point.alpha)],
        edgecolors=[colors.to_rgba(point.outline_color, point.outline_alpha)],
        linewidths=point.outline_width,
        zorder=5,
    )
    if entity.title:
        label = entity.style.label
        dx, dy = label.pixel_offset
        bbox = None
        if label.show_background:
            pad_x, _ = label.background_padding
            bbox = {
                "boxstyle": f"round,pad={pad_x / label.font_size_px:.2f}",
                "facecolor": (0.16, 0.16, 0.16, 0.8),
                "edgecolor": "none",
            }
        text = ax.annotate(
            entity.title,
            xy=(x, y),
            xytext=(dx, -dy),
            textcoords="offset pixels",
            ha="center",
            va="bottom",
            fontsize=label.font_size_px * 0.75,
            family=label.font_family,
            color="white",
            bbox=bbox,
            zorder=6,
        )
        text.set_path_effects(
            [patheffects.withStroke(linewidth=label.outline_width, foreground="black")]
        )
    return True


def _build_projection(camera: Camera) -> _OrthoProjection:
    transformer_cls = _require_pyproj_transformer()
    crs = (
        f"+proj=ortho +lat_0={camera.lat:.6f} +lon_0={camera.lon:.6f} "
        "+ellps=WGS84 +units=m +no_defs"
    )
    transformer = transformer_cls.from_crs("EPSG:4326", crs, always_xy=True)
    return _OrthoProjection(
        transformer=transformer,
        half_extent_m=visible_half_extent_m(camera.height_m),
    )


def _require_matplotlib() -> tuple[Any, Any, Any]:
    try:
        import matplotlib

        matplotlib.use("Agg", force=False)
        import matplotlib.colors as colors
        import matplotlib.patheffects as patheffects
        import matplotlib.pyplot as plt
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("matplotlib is required for globe rendering") from exc
    return (plt, colors, patheffects)


@lru_cache(maxsize=1)
def _require_pyproj_transformer() -> Any:
    try:
        from pyproj import Transformer
    except ImportError as exc:  # pragma: no cover
        raise RuntimeError("pyproj is required for globe rendering") from exc
    return Transformer
