"""
Configuration loading for the Tender Portal Monitor.

The YAML file only needs to contain the settings that differ from
DEFAULT_CONFIG; everything else is filled in by a recursive merge.
"""

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/config.yaml"

DEFAULT_PORTALS = [
    {
        "id": "etenders-gov",
        "name": "Government e-Tenders Portal",
        "url": "https://etenders.gov.in",
        "type": "government",
        "active": True,
        "search_endpoint": "/eprocure/app?page=FrontEndLatestActiveTenders&service=page",
    },
    {
        "id": "gem-portal",
        "name": "Government e-Marketplace (GeM)",
        "url": "https://gem.gov.in",
        "type": "government",
        "active": True,
        "search_endpoint": "/api/tenders",
    },
    {
        "id": "kerala-eproc",
        "name": "Kerala e-Procurement",
        "url": "https://etenders.kerala.gov.in",
        "type": "government",
        "active": True,
        "search_endpoint": "/nicgep/app?page=FrontEndLatestActiveTenders&service=page",
    },
    {
        "id": "tenderwizard",
        "name": "TenderWizard",
        "url": "https://tenderwizard.com",
        "type": "private",
        "active": True,
        "search_endpoint": "/api/search-tenders",
    },
    {
        "id": "biddingowl",
        "name": "BiddingOwl",
        "url": "https://biddingowl.com",
        "type": "private",
        "active": True,
        "search_endpoint": "/search",
    },
    {
        "id": "indian-railways",
        "name": "Indian Railways Tenders",
        "url": "https://indianrailways.gov.in",
        "type": "government",
        "active": True,
        "search_endpoint": "/tender-search",
    },
]

DEFAULT_CONFIG: Dict[str, Any] = {
    "general": {
        "log_level": "INFO",
        "log_file": "data/monitor.log",
        "log_max_bytes": 10 * 1024 * 1024,
        "log_backup_count": 5,
    },
    "database": {
        "path": "data/tenders.db",
    },
    "monitoring": {
        "interval_minutes": 60,
        "max_workers": 8,
    },
    "scraping": {
        "fetch_timeout": 300,
        "mock_delay_min": 2.0,
        "mock_delay_max": 5.0,
        "headless": True,
        "user_agent": None,
        "page_load_timeout": 60,
    },
    "keywords": {
        "file": None,
        "terms": ["metro", "railway", "transport", "infrastructure", "kmrl", "kochi"],
        "exclusions": [],
    },
    "priority": {
        "urgent_value": 10_000_000,
        "high_value": 5_000_000,
        "high_keywords": ["metro", "railway", "kmrl"],
        "default": "medium",
    },
    # portal id -> source name; anything not listed uses "mock"
    "sources": {},
    "portals": DEFAULT_PORTALS,
    "email": {
        "enabled": False,
        "sender": "",
        "recipients": {"to": [], "cc": []},
        "subject_template": "New Tender: {title}",
    },
}


def merge_config(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Recursively merge ``override`` into a copy of ``base``.

    Nested dictionaries are merged key by key; any other value
    (including lists) replaces the base value outright.
    """
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_config(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def load_config(config_path: Optional[str] = DEFAULT_CONFIG_PATH) -> Dict[str, Any]:
    """
    Load configuration from a YAML file and merge it over the defaults.

    Args:
        config_path: Path to config file, or None for defaults only

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If ``config_path`` is given but does not exist
    """
    if config_path is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(path, "r", encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    if not isinstance(loaded, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    logger.debug(f"Loaded configuration from {config_path}")
    return merge_config(DEFAULT_CONFIG, loaded)
