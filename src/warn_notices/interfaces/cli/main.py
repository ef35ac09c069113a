import argparse
import logging
from pathlib import Path
from typing import Optional

import colorlog
import httpx
import yaml

from warn_notices.core.collector import search_notices_for_company
from warn_notices.core.config import DEFAULT_CONFIG_PATH, ScraperConfig, load_config
from warn_notices.core.errors import ScraperError
from warn_notices.core.models import NoticeCollection

try:
    from warn_notices import __version__ as _PACKAGE_VERSION
except ImportError:  # pragma: no cover
    _PACKAGE_VERSION = "unknown"  # type: ignore[assignment]


def setup_logging(
    verbose: bool = False, warnings_only: bool = False, errors_only: bool = False
) -> None:
    logger = logging.getLogger()
    for h in list(logger.handlers):
        logger.removeHandler(h)
    log_format = (
        "%(asctime)s:%(levelname)s:%(name)s in %(filename)s:%(funcName)s:%(lineno)d: %(message)s"
    )
    log_colors = {
        "DEBUG": "cyan",
        "INFO": "green",
        "WARNING": "yellow",
        "ERROR": "red",
        "CRITICAL": "bold_red",
    }
    stream_handler = colorlog.StreamHandler()
    formatter = colorlog.ColoredFormatter(f"%(log_color)s{log_format}", log_colors=log_colors)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)
    if errors_only:
        logger.setLevel(logging.ERROR)
    elif warnings_only:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.DEBUG if verbose else logging.INFO)


def _load_config(args: argparse.Namespace) -> Optional[ScraperConfig]:
    """Resolve --config; falls back to config/scraper.yaml, then built-in defaults."""
    config_arg = getattr(args, "config", None)
    try:
        if config_arg:
            return load_config(Path(config_arg))
        if DEFAULT_CONFIG_PATH.exists():
            return load_config(DEFAULT_CONFIG_PATH)
        return load_config(None)
    except (FileNotFoundError, ValueError, TypeError, yaml.YAMLError) as e:
        logging.error("Invalid configuration: %s", e)
        return None


def _scrape(args: argparse.Namespace, config: ScraperConfig) -> Optional[NoticeCollection]:
    # Imported lazily so --help works without the scraping stack loaded
    from warn_notices.pipeline import collect_current_week, collect_notices

    verbose = bool(getattr(args, "verbose", False))
    try:
        if getattr(args, "current_week_only", False):
            return collect_current_week(config)
        return collect_notices(config, verbose=verbose).combined
    except (ScraperError, httpx.HTTPError, OSError) as e:
        logging.error("Scraping failed: %s: %s", type(e).__name__, e)
        return None


def _emit(notices: NoticeCollection, csv_path: Optional[str]) -> int:
    print(notices.to_json())
    if csv_path:
        try:
            notices.to_dataframe().to_csv(csv_path, index=False, encoding="utf-8-sig")
        except (OSError, ValueError) as e:
            logging.error("Failed writing CSV %s: %s", csv_path, e)
            return 1
        logging.info("Saved CSV: %s", csv_path)
    return 0


def cmd_get_all(args: argparse.Namespace) -> int:
    """Print every notice found (this week and year to date) as JSON."""
    config = _load_config(args)
    if config is None:
        return 2
    notices = _scrape(args, config)
    if notices is None:
        return 1
    logging.info("Found %d notices", len(notices))
    return _emit(notices, getattr(args, "csv", None))


def cmd_search(args: argparse.Namespace) -> int:
    """Print the notices whose company name contains the search key, ignoring case."""
    config = _load_config(args)
    if config is None:
        return 2
    notices = _scrape(args, config)
    if notices is None:
        return 1
    matches = search_notices_for_company(notices, args.company_name)
    logging.info("%d of %d notices match %r", len(matches), len(notices), args.company_name)
    return _emit(matches, getattr(args, "csv", None))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="warn-notices",
        description=f"WARN Notice Tools (v{_PACKAGE_VERSION})",
    )
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    p.add_argument(
        "--warnings-only",
        action="store_true",
        help="Show only warnings and errors (overrides --verbose)",
    )
    p.add_argument(
        "--errors-only",
        action="store_true",
        help="Show only errors (overrides --warnings-only and --verbose)",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to scraper.yaml (defaults to config/scraper.yaml, then built-in defaults)",
    )

    sub = p.add_subparsers(dest="command", required=True)

    p_all = sub.add_parser("get-all", help="Display all notices as JSON")
    p_all.add_argument(
        "--current-week-only",
        action="store_true",
        help="Only parse the weekly page; skip the year-to-date spreadsheet",
    )
    p_all.add_argument("--csv", default=None, help="Also write the notices to this CSV file")
    p_all.set_defaults(func=cmd_get_all)

    p_search = sub.add_parser("search", help="Search all notices for a company name")
    p_search.add_argument("company_name", help="Company name (or part of it), case insensitive")
    p_search.add_argument(
        "--current-week-only",
        action="store_true",
        help="Only search this week's notices",
    )
    p_search.add_argument("--csv", default=None, help="Also write the matches to this CSV file")
    p_search.set_defaults(func=cmd_search)

    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(
        verbose=bool(args.verbose),
        warnings_only=bool(getattr(args, "warnings_only", False)),
        errors_only=bool(getattr(args, "errors_only", False)),
    )
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
