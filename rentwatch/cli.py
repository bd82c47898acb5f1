"""
Command-line entrypoint: one-shot run, recurring loop, or HTTP service.
"""
import argparse
import asyncio
import logging
import os
import sys

from .config import ConfigError, Settings
from .core import run_once
from .export import export_delivered_since, write_frame
from .seen import db_connect, db_init
from .utils import init_logger

logger = logging.getLogger("rentwatch")


def parse_args(argv=None):
    ap = argparse.ArgumentParser(
        description="Rental listings watcher: crawl, filter and send new ads to Telegram"
    )
    mode = ap.add_mutually_exclusive_group()
    mode.add_argument("--loop", action="store_true", help="Run repeatedly every --interval-min minutes")
    mode.add_argument("--serve", action="store_true", help="Start the HTTP trigger service")
    ap.add_argument("--interval-min", type=float, default=30, help="Minutes between runs in --loop mode")
    ap.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"), help="Bind address for --serve")
    ap.add_argument("--port", type=int, default=int(os.getenv("PORT", "8000")), help="Port for --serve")

    # Overrides of environment settings
    ap.add_argument("--pages", type=int, default=None, help="List pages to scan (env PAGES)")
    ap.add_argument("--limit", type=int, default=None, help="Max matched ads per run (env ADS_LIMIT)")
    ap.add_argument("--max-price", type=int, default=None, help="Price ceiling (env MAX_PRICE)")
    ap.add_argument("--seen-db", type=str, default=None, help="Path to SQLite seen DB (env SEEN_DB)")
    ap.add_argument("--no-seen", action="store_true", help="Disable seen persistence for this run")
    ap.add_argument("--out", type=str, default=None, help="CSV/XLSX file for this run's matched ads")
    ap.add_argument("--export-delivered", action="store_true",
                    help="Write ads delivered during this run to --out instead of all matches")

    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "rentwatch.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or rentwatch.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def build_settings(args) -> Settings:
    settings = Settings.from_env().with_overrides(
        pages=args.pages,
        ads_limit=args.limit,
        max_price=args.max_price,
        seen_db_path=args.seen_db,
    )
    if args.no_seen:
        settings = settings.with_overrides(seen_db_path="")
    if args.out and not args.export_delivered:
        settings = settings.with_overrides(export_path=args.out)
    return settings


def export_delivered(settings: Settings, since_iso: str, out_path: str):
    if not settings.seen_db_path:
        logger.warning("Seen storage disabled, nothing to export")
        return
    conn = db_connect(settings.seen_db_path)
    try:
        db_init(conn)
        df = export_delivered_since(conn, since_iso, settings.seen_namespace)
        write_frame(df, out_path)
        logger.info(f">>> Export delivered ads: {len(df)} rows -> {out_path}")
    finally:
        conn.close()


async def run_loop(settings: Settings, interval_min: float):
    """Recurring timer mode: one run every interval, errors logged and survived."""
    while True:
        try:
            await run_once(settings)
        except ConfigError:
            raise
        except Exception:
            logger.exception("Run failed")
        await asyncio.sleep(interval_min * 60)


def main(argv=None) -> int:
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )
    logger.info(
        f"Logger initialized: console={eff_console}, "
        f"file={'DISABLED' if args.no_file_log else eff_file}, "
        f"path={'N/A' if args.no_file_log else args.log_file_path}"
    )

    if args.serve:
        import uvicorn
        uvicorn.run("rentwatch_api.main:app", host=args.host, port=args.port,
                    log_level=eff_console.lower())
        return 0

    settings = build_settings(args)
    try:
        if args.loop:
            asyncio.run(run_loop(settings, args.interval_min))
            return 0
        summary = asyncio.run(run_once(settings))
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    if args.out and args.export_delivered:
        export_delivered(settings, summary.started_at, args.out)
    return 0


if __name__ == "__main__":
    sys.exit(main())
