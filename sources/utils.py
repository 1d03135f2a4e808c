"""
Shared utilities for source modules.

Text and date helpers for the listing formats used by Indian e-procurement
portals.
"""

import re
from datetime import datetime
from typing import List, Optional
from urllib.parse import urljoin

DATE_FORMATS = [
    "%d-%b-%Y %I:%M %p",
    "%d-%b-%Y %H:%M",
    "%d-%b-%Y",
    "%d-%m-%Y %H:%M",
    "%d-%m-%Y",
    "%d/%m/%Y",
    "%d.%m.%Y",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
]


def clean_text(text: Optional[str]) -> str:
    """
    Collapse whitespace and strip.

    Args:
        text: Text to clean

    Returns:
        Cleaned text ("" for None)
    """
    if not text:
        return ""
    return re.sub(r"\s+", " ", text).strip()


def normalize_url(url: Optional[str], base_url: str = "") -> str:
    """
    Resolve a possibly relative URL against the portal base URL.

    Args:
        url: URL to normalize
        base_url: Base URL for relative URLs

    Returns:
        Absolute URL, or "" when there is none
    """
    if not url:
        return ""

    url = url.strip()
    if base_url and not url.startswith(("http://", "https://")):
        url = urljoin(base_url, url)

    return url


def parse_portal_date(text: Optional[str]) -> Optional[datetime]:
    """
    Parse the date formats seen on portal listings.

    Examples: "19-Oct-2026 10:00 AM", "19-10-2026", "2026-10-19".

    Returns:
        Datetime or None if nothing matched
    """
    text = clean_text(text)
    if not text:
        return None

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return None


def extract_bracketed(text: Optional[str]) -> List[str]:
    """
    Return the contents of every [...] group in order.

    GePNIC listings render "Title and Ref.No./Tender ID" as
    "[Title] [Ref No] [Tender ID]".
    """
    if not text:
        return []
    return [clean_text(part) for part in re.findall(r"\[([^\]]*)\]", text)]
