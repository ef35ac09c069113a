"""Scraper configuration.

This module centralizes the page markers, URLs and staging paths used by the
scraper. Defaults match the Massachusetts WARN weekly report page; any of
them can be overridden from a YAML file:

    base_url: https://www.mass.gov
    page_path: /info-details/worker-adjustment-and-retraining-act-warn-weekly-report
    timeout_sec: 60
    start_row: 3
    markers:
      heading_text: Companies that submitted WARN notices this past week
    staging:
      staging_dir: .warn_staging/downloads
      target_filename: warn_report_{year}.xlsx
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .utils import resolve_url

# ============================================================================
# DEFAULTS
# ============================================================================

DEFAULT_BASE_URL = "https://www.mass.gov"
DEFAULT_PAGE_PATH = "/info-details/worker-adjustment-and-retraining-act-warn-weekly-report"
DEFAULT_TIMEOUT_SEC = 60.0

# Rows 0-2 hold the report title and column headings
DEFAULT_START_ROW = 3

DEFAULT_CONFIG_PATH = Path("config/scraper.yaml")


@dataclass(frozen=True)
class PageMarkers:
    """Text and selectors used to find notices on the weekly report page."""

    heading_selector: str = "body section > h2"
    heading_text: str = "Companies that submitted WARN notices this past week"
    notice_prefix: str = "Company:"
    year_to_date_text: str = "WARN Report for the week ending"


@dataclass(frozen=True)
class StagingSettings:
    """Where the year-to-date spreadsheet is downloaded and staged."""

    staging_dir: Path = Path(".warn_staging/downloads")
    target_dir: Path = Path(".warn_staging")
    target_filename: str = "warn_report_{year}.xlsx"
    extension: str = "xlsx"
    retriever: str = "httpx"  # "httpx" | "wget"

    def target_path(self, year: str) -> Path:
        """Deterministic path of the staged spreadsheet for a two-digit year."""
        return self.target_dir / self.target_filename.format(year=year)


@dataclass(frozen=True)
class ScraperConfig:
    base_url: str = DEFAULT_BASE_URL
    page_path: str = DEFAULT_PAGE_PATH
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    start_row: int = DEFAULT_START_ROW
    markers: PageMarkers = field(default_factory=PageMarkers)
    staging: StagingSettings = field(default_factory=StagingSettings)

    @property
    def page_url(self) -> str:
        return resolve_url(self.base_url, self.page_path)


def _known_keys(cls: type, data: Dict[str, Any]) -> Dict[str, Any]:
    names = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in names}


def config_from_dict(data: Dict[str, Any]) -> ScraperConfig:
    """Build a ScraperConfig from a parsed YAML mapping, keeping defaults for missing keys."""
    top = _known_keys(ScraperConfig, data)
    markers = PageMarkers(**_known_keys(PageMarkers, data.get("markers") or {}))

    staging_data = _known_keys(StagingSettings, data.get("staging") or {})
    for key in ("staging_dir", "target_dir"):
        if key in staging_data:
            staging_data[key] = Path(staging_data[key])
    staging = StagingSettings(**staging_data)

    cfg = ScraperConfig(markers=markers, staging=staging)
    overrides: Dict[str, Any] = {}
    if "base_url" in top:
        overrides["base_url"] = str(top["base_url"])
    if "page_path" in top:
        overrides["page_path"] = str(top["page_path"])
    if "timeout_sec" in top:
        overrides["timeout_sec"] = float(top["timeout_sec"])
    if "start_row" in top:
        overrides["start_row"] = int(top["start_row"])
    return replace(cfg, **overrides)


def load_config(config_path: Optional[Path] = None) -> ScraperConfig:
    """Load scraper configuration.

    Args:
        config_path: YAML file to read. When None, built-in defaults are used.

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist.
    """
    if config_path is None:
        return ScraperConfig()
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")
    with config_path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")
    return config_from_dict(data)


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_START_ROW",
    "PageMarkers",
    "StagingSettings",
    "ScraperConfig",
    "config_from_dict",
    "load_config",
]
