"""Country polygon ingestion: GeoJSON -> viewer entities + country index."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .config import AppConfig, StyleConfig
from .countries import CountryIndex
from .geometry import DEFAULT_MAX_RING_POINTS, ring_centroid_deg, select_outer_ring
from .io_geojson import POLYGON_TYPES, GeoJsonRepository, feature_geometry_type, iter_polygon_ring_sets
from .models import CountryEntry, FeatureMetadata, PropertyMapping, Ring
from .viewer import (
    BORDER_SOURCE_NAME,
    FILL_SOURCE_NAME,
    DataSource,
    GlobeViewer,
    polygon_entity,
    polyline_entity,
)


_LOGGER = logging.getLogger("globeview.ingest")

_SUMMARY_KEYS = (
    "features",
    "features_skipped",
    "ring_sets",
    "ring_sets_rendered",
    "rings_rejected_invalid",
    "rings_rejected_too_large",
    "indexed",
    "duplicates_ignored",
)


@dataclass(slots=True)
class IngestReport:
    source: str | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    infos: list[str] = field(default_factory=list)
    summary: dict[str, int] = field(default_factory=lambda: dict.fromkeys(_SUMMARY_KEYS, 0))

    @property
    def ok(self) -> bool:
        return not self.errors

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)

    def add_info(self, msg: str) -> None:
        self.infos.append(msg)

    def count(self, key: str, amount: int = 1) -> None:
        self.summary[key] = self.summary.get(key, 0) + amount

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "ok": self.ok,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "infos": list(self.infos),
            "summary": dict(self.summary),
        }


class PolygonIngestor:
    """Turns a FeatureCollection into fill/border entities and index entries."""

    def __init__(
        self,
        index: CountryIndex,
        *,
        style: StyleConfig | None = None,
        properties: PropertyMapping | None = None,
        max_ring_points: int = DEFAULT_MAX_RING_POINTS,
    ) -> None:
        self.index = index
        self.style = style or StyleConfig()
        self.properties = properties or PropertyMapping()
        self.max_ring_points = max_ring_points

    def ingest(
        self,
        collection: Mapping[str, Any],
        *,
        report: IngestReport | None = None,
    ) -> tuple[DataSource, DataSource, IngestReport]:
        """Build both data sources; the index is filled as a side effect."""
        report = report or IngestReport()
        fill_ds = DataSource(FILL_SOURCE_NAME)
        border_ds = DataSource(BORDER_SOURCE_NAME)

        features = collection.get("features") or []
        if not isinstance(features, Sequence) or isinstance(features, (str, bytes)):
            raise ValueError("Expected 'features' to be a list")

        for feature in features:
            report.count("features")
            if feature_geometry_type(feature) not in POLYGON_TYPES:
                report.count("features_skipped")
                continue
            meta = self.properties.extract(feature.get("properties"))
            for rings in iter_polygon_ring_sets(feature):
                report.count("ring_sets")
                ring = self._select_ring(rings, report)
                if ring is None:
                    continue
                self._add_country(ring, meta, fill_ds, border_ds, report)

        return (fill_ds, border_ds, report)

    def _select_ring(self, rings: Any, report: IngestReport) -> Ring | None:
        ring, invalid, too_large = select_outer_ring(rings, max_points=self.max_ring_points)
        report.count("rings_rejected_invalid", invalid)
        report.count("rings_rejected_too_large", too_large)
        return ring

    def _add_country(
        self,
        ring: Ring,
        meta: FeatureMetadata,
        fill_ds: DataSource,
        border_ds: DataSource,
        report: IngestReport,
    ) -> None:
        report.count("ring_sets_rendered")
        if self.index.lookup(meta.name) is None:
            lon, lat = ring_centroid_deg(ring)
            added = self.index.add(
                CountryEntry(
                    lon=lon,
                    lat=lat,
                    display_name=meta.name,
                    iso2=meta.iso2,
                    iso3=meta.iso3,
                )
            )
            if added:
                report.count("indexed")
        else:
            report.count("duplicates_ignored")

        fill_ds.entities.add(polygon_entity(ring, self.style.fill, name=meta.name))
        border_ds.entities.add(polyline_entity(ring, self.style.border, name=meta.name))


def run_ingestion(
    repo: GeoJsonRepository,
    ingestor: PolygonIngestor,
    viewer: GlobeViewer | None,
) -> IngestReport:
    """Fetch, parse, and build inside one failure boundary.

    Any failure is logged and recorded; the index keeps whatever it already
    held and no data sources are attached to the viewer.
    """
    report = IngestReport(source=repo.source)
    try:
        collection = repo.load()
        fill_ds, border_ds, _ = ingestor.ingest(collection, report=report)
        if viewer is not None:
            viewer.add_data_source(fill_ds)
            viewer.add_data_source(border_ds)
    except Exception as exc:
        _LOGGER.error("Failed to load country polygons: %s", exc)
        report.add_error(f"Failed to load country polygons from {repo.source}: {exc}")
        return report

    report.add_info(f"Loaded {report.summary['features']} features from {repo.source}")
    if report.summary["rings_rejected_too_large"]:
        report.add_warning(
            f"{report.summary['rings_rejected_too_large']} rings exceeded "
            f"{ingestor.max_ring_points} points and were skipped."
        )
    if not len(ingestor.index):
        report.add_warning("No country names were indexed.")
    _LOGGER.info("Countries loaded. Names: %d", len(ingestor.index))
    return report


class CountryLoader:
    """One-shot background ingestion with an observable readiness flag."""

    def __init__(
        self,
        repo: GeoJsonRepository,
        ingestor: PolygonIngestor,
        viewer: GlobeViewer | None = None,
    ) -> None:
        self.repo = repo
        self.ingestor = ingestor
        self.viewer = viewer
        self._executor: ThreadPoolExecutor | None = None
        self._future: Future[IngestReport] | None = None

    @classmethod
    def from_config(
        cls, cfg: AppConfig, index: CountryIndex, viewer: GlobeViewer | None = None
    ) -> CountryLoader:
        repo = GeoJsonRepository(
            cfg.paths.countries_geojson,
            request_timeout_s=cfg.data.request_timeout_s,
            user_agent=cfg.data.user_agent,
        )
        ingestor = PolygonIngestor(
            index,
            style=cfg.style,
            properties=cfg.data.properties,
            max_ring_points=cfg.ingest.max_ring_points,
        )
        return cls(repo, ingestor, viewer)

    @property
    def index(self) -> CountryIndex:
        return self.ingestor.index

    @property
    def started(self) -> bool:
        return self._future is not None

    @property
    def ready(self) -> bool:
        return self._future is not None and self._future.done()

    def start(self) -> Future[IngestReport]:
        if self._future is not None:
            return self._future
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="globeview-ingest")
        self._future = self._executor.submit(run_ingestion, self.repo, self.ingestor, self.viewer)
        self._executor.shutdown(wait=False)
        _LOGGER.debug("Country ingestion started for %s", self.repo.source)
        return self._future

    def wait(self, timeout: float | None = None) -> IngestReport:
        """Block until the pass finishes; starts it first if needed."""
        future = self.start()
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as exc:
            raise TimeoutError(
                f"Country data from {self.repo.source} not ready after {timeout}s"
            ) from exc


def format_ingest_lines(report: IngestReport) -> Sequence[str]:
    lines: list[str] = []
    lines.extend(f"[INFO] {msg}" for msg in report.infos)
    summary = " ".join(f"{key}={report.summary.get(key, 0)}" for key in _SUMMARY_KEYS)
    lines.append(f"[INFO] Summary: {summary}")
    lines.extend(f"[WARN] {msg}" for msg in report.warnings)
    lines.extend(f"[ERROR] {msg}" for msg in report.errors)
    if report.ok:
        lines.append("[OK] Country ingestion completed with no errors.")
    return lines
