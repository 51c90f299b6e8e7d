"""Command line batch import bootstrap."""

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from trackimport import __version__
from trackimport.config.profiles import ProfileStore
from trackimport.config.settings import AppSettings
from trackimport.core.batch_importer import BatchImporter, ImportEventType
from trackimport.core.scanner import FileScanner
from trackimport.core.track_data import TagVersion
from trackimport.errors import TrackImportError, format_error_for_user
from trackimport.importers import create_importers
from trackimport.ui.models.track_data_model import TrackDataModel


def _configure_logger(settings: AppSettings) -> logging.Logger:
    logger = logging.getLogger("trackimport")
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    handler = RotatingFileHandler(
        settings.log_dir / "trackimport.log",
        maxBytes=512_000,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackimport",
        description="Import tags and cover art for album directories from online databases.",
    )
    parser.add_argument("directories", nargs="+", help="album directories to scan")
    parser.add_argument("--profile", help="batch import profile (default: from settings)")
    parser.add_argument("--tag-version", type=int, choices=(1, 2, 3),
                        help="tags to write: 1, 2 or 3 for both")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _print_event(event_type: ImportEventType, text: str) -> None:
    label = event_type.name.replace("_", " ").capitalize()
    print(f"{label}: {text}" if text else label, flush=True)


def run_app(argv: list[str] | None = None) -> int:
    """Scan the directories and run a batch import over them."""
    args = build_parser().parse_args(argv)
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    app.setApplicationName("TrackImport")
    app.setOrganizationName("TrackImport")
    settings = AppSettings()
    logger = _configure_logger(settings)
    logger.info("trackimport %s started for %s", __version__, args.directories)

    store = ProfileStore(settings.profiles_path)
    try:
        store.load()
    except TrackImportError as exc:
        logger.error("profile load failed: %s", exc)
        print(format_error_for_user(exc), file=sys.stderr)
        return 2
    profile_name = args.profile or settings.batch_profile
    profile = store.get(profile_name)
    if profile is None:
        print(f"Unknown profile {profile_name!r}, available: {', '.join(store.names())}",
              file=sys.stderr)
        return 2
    tag_version = TagVersion(args.tag_version) if args.tag_version else settings.tag_version

    track_lists = []
    for directory in args.directories:
        track_lists.extend(FileScanner(directory).scan())
    logger.info("%d track lists found", len(track_lists))

    model = TrackDataModel()
    importers = create_importers(model, settings)
    batch = BatchImporter(importers, model,
                          from_filename_format=settings.from_filename_format)
    batch.report_import_event.connect(_print_event)
    batch.finished.connect(app.quit)
    QTimer.singleShot(0, lambda: batch.start(track_lists, profile, tag_version))

    exit_code = app.exec()
    return 1 if batch.is_aborted() else exit_code
