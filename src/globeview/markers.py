"""Manual marker placement and popups."""

from __future__ import annotations

import logging
from typing import Protocol, Sequence

from shapely.geometry import Point

from .config import FlyToConfig, MarkerStyle
from .countries import DEFAULT_SUGGESTION_LIMIT, CountryIndex
from .ingest import CountryLoader
from .viewer import MANUAL_MARKERS_SOURCE_NAME, DataSource, GlobeViewer, MarkerEntity


_LOGGER = logging.getLogger("globeview.markers")


class CountryNotFoundError(LookupError):
    """Raised when a typed country name has no index entry."""

    def __init__(self, name: str, suggestions: Sequence[str]) -> None:
        self.name = name
        self.suggestions = tuple(suggestions)
        lines = "\n".join(f"- {item}" for item in self.suggestions)
        super().__init__(f'Country not found: "{name}".\n\nTry one of these:\n{lines}')


class PopupPresenter(Protocol):
    def show(self, title: str, description: str) -> None: ...

    def alert(self, message: str) -> None: ...


class LoggingPresenter:
    """Presents popups and alerts through the logging module."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger("globeview.popup")

    def show(self, title: str, description: str) -> None:
        if description:
            self.logger.info("%s\n\n%s", title, description)
        else:
            self.logger.info("%s", title)

    def alert(self, message: str) -> None:
        self.logger.warning("%s", message)


class MarkerController:
    """Owns the single manual marker and resolves names through the index."""

    def __init__(
        self,
        viewer: GlobeViewer,
        index: CountryIndex,
        *,
        presenter: PopupPresenter | None = None,
        loader: CountryLoader | None = None,
        style: MarkerStyle | None = None,
        fly_to: FlyToConfig | None = None,
        suggestion_limit: int = DEFAULT_SUGGESTION_LIMIT,
        ready_timeout_s: float | None = None,
    ) -> None:
        self.viewer = viewer
        self.index = index
        self.presenter: PopupPresenter = presenter or LoggingPresenter()
        self.loader = loader
        self.style = style or MarkerStyle()
        self.fly_to = fly_to or FlyToConfig()
        self.suggestion_limit = suggestion_limit
        self.ready_timeout_s = ready_timeout_s
        self._markers = viewer.add_data_source(DataSource(MANUAL_MARKERS_SOURCE_NAME))

    @property
    def current_marker(self) -> MarkerEntity | None:
        markers = self._markers.entities.of_type(MarkerEntity)
        return markers[-1] if markers else None

    def place_at(self, lon: float, lat: float, title: str = "", description: str = "") -> MarkerEntity:
        self._markers.entities.remove_all()
        marker = self._markers.entities.add(
            MarkerEntity(
                position=Point(lon, lat),
                title=title or "",
                description=description or "",
                style=self.style,
            )
        )
        self.viewer.camera.fly_to(lon, lat, self.fly_to.height_m, self.fly_to.duration_s)
        self.presenter.show(marker.title, marker.description)
        return marker

    def place_by_name(self, name: str) -> MarkerEntity:
        self._wait_for_countries()
        hit = self.index.lookup(name)
        if hit is None:
            raise CountryNotFoundError(name, self.index.suggest(name, self.suggestion_limit))
        return self.place_at(
            hit.lon,
            hit.lat,
            title=hit.display_name or name,
            description=hit.describe(),
        )

    def place_from_prompt(self, text: str | None) -> MarkerEntity | None:
        """Handle one line typed at the country prompt; blank input is ignored."""
        if text is None or not text.strip():
            return None
        try:
            return self.place_by_name(text)
        except CountryNotFoundError as exc:
            self.presenter.alert(str(exc))
            return None

    def _wait_for_countries(self) -> None:
        if self.loader is None:
            return
        if not self.loader.ready:
            _LOGGER.debug("Waiting for country data before lookup.")
        self.loader.wait(self.ready_timeout_s)
