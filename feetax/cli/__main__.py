from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from feetax.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    FeetaxConfig,
    SettingsError,
    load_config,
    validate_settings_update,
)
from feetax.excel.reader import SourceDecodeError
from feetax.excel.writer import DEFAULT_EXPORT_NAME
from feetax.logging.error_log import ErrorLogBuffer
from feetax.logging.init import log_summary, setup_logging
from feetax.services.aggregator import aggregate
from feetax.services.progress import ProgressTracker
from feetax.services.store import IngestionBusyError, Store
from feetax.services.summary import render_summary_line, render_summary_report
from feetax.storage.json_storage import JsonFileStorage, StorageError

"""CLI entrypoint.

Subcommands drive the Store the way the web front-end does:
- upload FILE   decode, validate, tax and aggregate a spreadsheet
- summary       show analytics for the stored records
- export [OUT]  write stored records back to a spreadsheet
- clear         drop stored records (settings are kept)
- settings      show, update or reset settings

Environment (.env is loaded first): FEETAX_STORAGE_PATH overrides the
storage file named in the config.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

STORAGE_ENV = "FEETAX_STORAGE_PATH"


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="feetax", description="Student fee tax calculator")
    p.add_argument("--config", type=Path, default=None, help=f"Config file (default {DEFAULT_CONFIG_PATH})")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    up = sub.add_parser("upload", help="Ingest a spreadsheet, replacing current data")
    up.add_argument("file", type=Path)
    up.add_argument("--sheet", default=None, help="Sheet name (default: first sheet)")

    sm = sub.add_parser("summary", help="Show analytics for stored records")
    sm.add_argument("--json", action="store_true", help="Print the summary as JSON")

    ex = sub.add_parser("export", help="Export stored records")
    ex.add_argument("output", type=Path, nargs="?", default=Path(DEFAULT_EXPORT_NAME))

    sub.add_parser("clear", help="Remove stored records")

    st = sub.add_parser("settings", help="Show or update settings")
    st.add_argument("--currency-symbol")
    st.add_argument("--default-tax-rate", type=float)
    st.add_argument("--institute-name")
    st.add_argument("--academic-year")
    st.add_argument("--home-state")
    st.add_argument("--reset", action="store_true", help="Restore default settings before applying updates")
    return p.parse_args(argv)


def _load_env_file(path: Path, override: bool = False) -> None:
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _resolve_config(config_path: Path | None) -> FeetaxConfig:
    """Explicit --config must exist; the default path is optional."""
    if config_path is not None:
        return load_config(config_path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return FeetaxConfig()


def _build_store(cfg: FeetaxConfig) -> Store:
    storage_path = os.getenv(STORAGE_ENV) or cfg.storage_path
    storage = JsonFileStorage(storage_path, namespace=cfg.namespace)
    return Store(storage, bucketing=cfg.time_bucketing, settings=cfg.settings)


def _cmd_upload(store: Store, cfg: FeetaxConfig, args: argparse.Namespace, logger) -> int:
    logger.info(f"Uploading {args.file}")
    error_log = ErrorLogBuffer(cfg.error_log_dir)
    trackers: list[ProgressTracker] = []

    def on_rows_read(total: int):
        tracker = ProgressTracker(total)
        trackers.append(tracker)
        return tracker.advance

    try:
        result = store.upload_file(
            args.file,
            sheet=args.sheet or cfg.sheet,
            error_log=error_log,
            on_rows_read=on_rows_read,
        )
    except SourceDecodeError as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL
    except IngestionBusyError as e:
        logger.error(f"upload: {e}")
        return EXIT_FATAL
    finally:
        for tracker in trackers:
            tracker.close()

    if result.errors:
        log_path = error_log.flush()
        logger.warning(f"{result.rejected} rows had validation errors (details: {log_path})")
        for error in result.errors:
            logger.debug(str(error))
    logger.info(f"Successfully processed {result.accepted} student records")

    summary = store.state.summary
    if summary is None:
        summary = aggregate(result.records, store.bucketing)
    summary_line = render_summary_line(args.file.name, result, summary)
    log_summary(summary_line[len("SUMMARY "):])
    return EXIT_PARTIAL_FAILURE if result.errors else EXIT_SUCCESS_ALL


def _cmd_summary(store: Store, args: argparse.Namespace, logger) -> int:
    summary = store.state.summary
    if summary is None:
        logger.info("no data loaded")
        return EXIT_SUCCESS_ALL
    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
        return EXIT_SUCCESS_ALL
    for line in render_summary_report(summary, store.state.settings.currency_symbol):
        logger.info(line)
    return EXIT_SUCCESS_ALL


def _cmd_settings(store: Store, args: argparse.Namespace, logger) -> int:
    changes = {
        key: getattr(args, key)
        for key in ("currency_symbol", "default_tax_rate", "institute_name", "academic_year", "home_state")
        if getattr(args, key) is not None
    }
    if changes:
        validate_settings_update(changes)
    if args.reset:
        store.reset_settings()
        logger.info("Settings reset to defaults")
    if changes:
        store.update_settings(**changes)
        logger.info("Settings saved successfully")
    for key, value in store.state.settings.to_dict().items():
        logger.info(f"{key}={value}")
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    _load_env_file(Path(".env"))

    try:
        cfg = _resolve_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        store = _build_store(cfg)
        if args.command == "upload":
            return _cmd_upload(store, cfg, args, logger)
        if args.command == "summary":
            return _cmd_summary(store, args, logger)
        if args.command == "export":
            path = store.export(args.output)
            logger.info(f"Exported {len(store.state.records)} records to {path}")
            return EXIT_SUCCESS_ALL
        if args.command == "clear":
            store.clear()
            logger.info("Data cleared")
            return EXIT_SUCCESS_ALL
        if args.command == "settings":
            return _cmd_settings(store, args, logger)
    except SettingsError as e:
        logger.error(f"settings: {e}")
        return EXIT_FATAL
    except StorageError as e:
        logger.error(f"storage: {e}")
        return EXIT_FATAL

    logger.error(f"unknown command: {args.command}")
    return EXIT_FATAL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
