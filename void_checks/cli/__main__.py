from __future__ import annotations

import argparse
import sys
from pathlib import Path

from dotenv import load_dotenv

from void_checks.config.loader import AppConfig, ConfigError, load_app_config
from void_checks.db.factory import create_store
from void_checks.db.store import StoreError
from void_checks.excel.reader import SchemaError, parse_upload
from void_checks.logging.error_log import ErrorLogBuffer, ErrorRecord
from void_checks.logging.init import get_logger, log_summary, setup_logging
from void_checks.models.import_result import ApplyResult, PreviewResult
from void_checks.services.reconcile import ImportMode, run_import
from void_checks.services.report import ReportError, local_now, run_pending_report
from void_checks.services.summary import render_summary_line

"""CLI entrypoint.

    python -m void_checks.cli preview FILE.xlsx
    python -m void_checks.cli apply FILE.xlsx
    python -m void_checks.cli report

Exit codes:
    0  success (preview, apply without write errors, report)
    2  apply finished but one or more rows failed to write
    1  fatal: config / schema / store / report delivery
"""

EXIT_SUCCESS = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env (override=True: .env の値で既存環境変数を上書き). 失敗時は警告のみで続行。"""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        get_logger().warning(f"failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Void check spreadsheet reconciliation")
    p.add_argument("command", choices=["preview", "apply", "report"])
    p.add_argument("file", nargs="?", help="Spreadsheet (.xlsx) for preview/apply")
    p.add_argument("--config", type=Path, default=None, help="Config YAML (default: config/app.yml)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print resolved columns & first rows then exit")
    return p.parse_args(argv)


def _inspect_data(path: Path) -> int:
    try:
        parsed = parse_upload(path)
    except SchemaError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name} SHEET: {parsed.sheet_name}")
    print(f"  columns={parsed.columns.present()} rows={len(parsed.rows)}")
    for row in parsed.rows[:3]:
        print(f"  row={row.row_number} id={row.id!r} check={row.check_number!r} notes={row.notes!r} status={row.status!r}")
    return EXIT_SUCCESS


def _log_outcomes(result: PreviewResult | ApplyResult) -> None:
    logger = get_logger()
    for upd in result.updates:
        changes = " ".join(
            f"{name}:{c.from_value!r}->{c.to_value!r}" for name, c in upd.changes.items()
        )
        logger.info(f"row={upd.row} id={upd.id} check={upd.check_number} {changes}")
    for w in result.warnings:
        logger.warning(f"row={w.row.row_number} {w.reason}")
    for s in result.skipped:
        logger.debug(f"row={s.row.row_number} id={s.record_id} {s.reason}")
    if isinstance(result, ApplyResult):
        for e in result.errors:
            logger.error(f"row={e.row} id={e.id} {e.error}")


def _run_report(cfg: AppConfig) -> int:
    logger = get_logger()
    try:
        outcome = run_pending_report(create_store(cfg), cfg.report, now=local_now(cfg.timezone))
    except (ReportError, StoreError) as e:
        logger.error(f"report: {e}")
        return EXIT_FATAL
    logger.info(outcome.message)
    return EXIT_SUCCESS


def _run_import(cfg: AppConfig, mode: ImportMode, path: Path) -> int:
    logger = get_logger()
    error_log = ErrorLogBuffer()
    store = create_store(cfg)

    try:
        if mode is ImportMode.APPLY:
            result = run_import(
                path, store, mode, show_progress=True, error_log=error_log, file_name=path.name
            )
        else:
            result = run_import(path, store, mode)
    except (SchemaError, StoreError) as e:
        error_type = "SCHEMA_ERROR" if isinstance(e, SchemaError) else "STORE_ERROR"
        logger.error(f"{mode.value}: {e}")
        error_log.append(ErrorRecord.create(file=path.name, row=-1, error_type=error_type, message=str(e)))
        _flush(error_log)
        return EXIT_FATAL

    _log_outcomes(result)
    _flush(error_log)

    summary_line = render_summary_line(mode.value, result)
    # log_summary が "SUMMARY " を付与するので除去
    log_summary(summary_line[len("SUMMARY "):])

    if isinstance(result, ApplyResult) and result.errors:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


def _flush(error_log: ErrorLogBuffer) -> None:
    try:
        path = error_log.flush()
    except OSError as e:
        get_logger().warning(f"error log flush failed: {e}")
        return
    if path is not None:
        get_logger().info(f"error log: {path}")


def main(argv: list[str] | None = None) -> int:
    # [] が渡された場合に sys.argv が混入しないよう None のときのみシステム引数を読む
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    logger = setup_logging(debug=args.debug)
    logger.debug("debug mode enabled")

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_app_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.command == "report":
        return _run_report(cfg)

    if not args.file:
        logger.error(f"{args.command}: spreadsheet file is required")
        return EXIT_FATAL
    path = Path(args.file)
    if not path.exists():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL

    if args.inspect_data:
        return _inspect_data(path)

    return _run_import(cfg, ImportMode(args.command), path)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
