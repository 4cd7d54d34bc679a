"""CLI entrypoint for the country globe viewer."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from . import __version__
from .config import AppConfig, load_config
from .countries import CountryIndex
from .ingest import CountryLoader, IngestReport, format_ingest_lines
from .markers import CountryNotFoundError, LoggingPresenter, MarkerController, PopupPresenter
from .render import GlobeRenderer
from .util import ensure_directories, setup_logging, write_json
from .viewer import GlobeViewer

LOGGER = logging.getLogger("globeview.cli")

PROMPT_TEXT = "Country name: "


@dataclass(slots=True)
class _Session:
    cfg: AppConfig
    index: CountryIndex
    viewer: GlobeViewer
    loader: CountryLoader
    controller: MarkerController
    renderer: GlobeRenderer

    def wait_for_countries(self) -> IngestReport:
        report = self.loader.wait(self.cfg.ingest.ready_timeout_s)
        for line in format_ingest_lines(report):
            LOGGER.debug(line)
        return report

    def render(self, output: Path | None = None) -> Path:
        path = output or self.cfg.paths.output_dir / self.cfg.render.output_name
        return self.renderer.render(self.viewer, path).path


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="globeview",
        description="Country globe viewer with name lookup and manual markers.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="config.yaml", help="Path to YAML config.")
        p.add_argument("--verbose", action="store_true", help="Enable debug logs.")

    def add_output(p: argparse.ArgumentParser) -> None:
        p.add_argument("--output", default=None, help="PNG path (defaults to configured output).")
        p.add_argument("--no-render", action="store_true", help="Skip writing the globe PNG.")

    render_p = subparsers.add_parser("render", help="Load countries and render the globe.")
    add_common(render_p)
    render_p.add_argument("--output", default=None, help="PNG path (defaults to configured output).")

    place_p = subparsers.add_parser("place", help="Place a marker on a country by name.")
    add_common(place_p)
    add_output(place_p)
    place_p.add_argument("name", help="Country name (case, accent and spacing insensitive).")

    place_at_p = subparsers.add_parser("place-at", help="Place a marker at explicit coordinates.")
    add_common(place_at_p)
    add_output(place_at_p)
    place_at_p.add_argument("lon", type=float, help="Longitude in degrees.")
    place_at_p.add_argument("lat", type=float, help="Latitude in degrees.")
    place_at_p.add_argument("--title", default="", help="Marker label text.")
    place_at_p.add_argument("--description", default="", help="Popup description.")

    list_p = subparsers.add_parser("list-names", help="Print all indexed country names.")
    add_common(list_p)

    interactive_p = subparsers.add_parser(
        "interactive",
        help="Prompt for country names and place a popup marker for each.",
    )
    add_common(interactive_p)
    interactive_p.add_argument(
        "--render",
        action="store_true",
        help="Re-render the globe PNG after every placement.",
    )

    validate_p = subparsers.add_parser(
        "validate",
        help="Run country ingestion and write a JSON report.",
    )
    add_common(validate_p)

    return parser


def _load_and_setup(args: argparse.Namespace) -> AppConfig:
    cfg = load_config(args.config)
    setup_logging(cfg.paths.logs_dir / "globeview.log", verbose=args.verbose)
    ensure_directories(cfg.paths.build_directories)
    return cfg


def _open_session(cfg: AppConfig, presenter: PopupPresenter | None = None) -> _Session:
    index = CountryIndex()
    viewer = GlobeViewer(cfg.viewer)
    loader = CountryLoader.from_config(cfg, index, viewer)
    loader.start()
    controller = MarkerController(
        viewer,
        index,
        presenter=presenter or LoggingPresenter(),
        loader=loader,
        style=cfg.style.marker,
        fly_to=cfg.viewer.fly_to,
        suggestion_limit=cfg.suggestions.limit,
        ready_timeout_s=cfg.ingest.ready_timeout_s,
    )
    return _Session(
        cfg=cfg,
        index=index,
        viewer=viewer,
        loader=loader,
        controller=controller,
        renderer=GlobeRenderer(cfg.render),
    )


def _run_render(session: _Session, *, output: Path | None) -> int:
    report = session.wait_for_countries()
    path = session.render(output)
    LOGGER.info("Globe image written to %s", path)
    return 0 if report.ok else 1


def _run_place(session: _Session, *, name: str, output: Path | None, no_render: bool) -> int:
    try:
        session.controller.place_by_name(name)
    except CountryNotFoundError as exc:
        session.controller.presenter.alert(str(exc))
        return 1
    except TimeoutError as exc:
        LOGGER.error("%s", exc)
        return 1
    if not no_render:
        session.render(output)
    return 0


def _run_place_at(
    session: _Session,
    *,
    lon: float,
    lat: float,
    title: str,
    description: str,
    output: Path | None,
    no_render: bool,
) -> int:
    if lon < -180.0 or lon > 180.0 or lat < -90.0 or lat > 90.0:
        LOGGER.error("Coordinates out of range: lon=%s lat=%s", lon, lat)
        return 1
    try:
        session.wait_for_countries()
    except TimeoutError as exc:
        LOGGER.error("%s", exc)
        return 1
    session.controller.place_at(lon, lat, title=title, description=description)
    if not no_render:
        session.render(output)
    return 0


def _run_list_names(session: _Session) -> int:
    session.wait_for_countries()
    names = session.index.display_names()
    for name in names:
        print(name)
    LOGGER.info("%d country names indexed.", len(names))
    return 0


def _run_interactive(
    session: _Session,
    *,
    render: bool,
    input_fn: Callable[[str], str] = input,
) -> int:
    LOGGER.info("Add Manual Popup: enter a country name, or an empty line to skip. Ctrl-D exits.")
    placed = 0
    while True:
        try:
            text = input_fn(PROMPT_TEXT)
        except (EOFError, KeyboardInterrupt):
            break
        try:
            marker = session.controller.place_from_prompt(text)
        except TimeoutError as exc:
            LOGGER.error("%s", exc)
            return 1
        if marker is None:
            continue
        placed += 1
        if render:
            session.render()
    LOGGER.info("Interactive session finished; %d markers placed.", placed)
    return 0


def _run_validate(session: _Session) -> int:
    report = session.wait_for_countries()
    for line in format_ingest_lines(report):
        LOGGER.info(line)
    report_path = session.cfg.paths.output_dir / "ingest_report.json"
    write_json(report_path, report.to_dict())
    LOGGER.info("Ingestion report written to %s", report_path)
    return 0 if report.ok else 1


def _dispatch(args: argparse.Namespace) -> int:
    cfg = _load_and_setup(args)
    session = _open_session(cfg)
    command = str(args.command)
    output = Path(args.output) if getattr(args, "output", None) else None
    if command == "render":
        return _run_render(session, output=output)
    if command == "place":
        return _run_place(
            session,
            name=str(args.name),
            output=output,
            no_render=bool(args.no_render),
        )
    if command == "place-at":
        return _run_place_at(
            session,
            lon=float(args.lon),
            lat=float(args.lat),
            title=str(args.title),
            description=str(args.description),
            output=output,
            no_render=bool(args.no_render),
        )
    if command == "list-names":
        return _run_list_names(session)
    if command == "interactive":
        return _run_interactive(session, render=bool(args.render))
    if command == "validate":
        return _run_validate(session)
    raise ValueError(f"Unknown command: {command}")


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return _dispatch(args)


if __name__ == "__main__":
    raise SystemExit(main())
