"""
Record types persisted by the Tender Portal Monitor.

Timestamps are held as ``datetime`` in memory and stored as ISO-8601
text; lists and payloads are stored as JSON.
"""

import json
import sqlite3
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Dict, List, Optional

PORTAL_TYPES = ("government", "private")
PRIORITIES = ("low", "medium", "high", "urgent")

NOTIFICATION_NEW_TENDER = "new-tender"
NOTIFICATION_SCAN_SUMMARY = "scan-summary"

CHANNEL_DASHBOARD = "dashboard"
CHANNEL_EMAIL = "email"


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime for storage (None passes through)."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return value.isoformat()


def from_iso(value: Any) -> Optional[datetime]:
    """Parse a stored timestamp back into a datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def dump_json(value: Any) -> str:
    return json.dumps(value, default=_json_default, ensure_ascii=False)


@dataclass
class Portal:
    """A tender portal being monitored."""

    id: str
    name: str
    url: str
    type: str = "government"
    active: bool = True
    search_endpoint: str = ""
    last_scanned: Optional[datetime] = None
    total_tenders: int = 0
    new_tenders: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Portal":
        """Build a portal from a catalog entry (config.yaml)."""
        return cls(
            id=str(data["id"]),
            name=data.get("name") or str(data["id"]),
            url=data.get("url", ""),
            type=data.get("type", "government"),
            active=bool(data.get("active", True)),
            search_endpoint=data.get("search_endpoint") or data.get("searchEndpoint") or "",
        )

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Portal":
        return cls(
            id=row["id"],
            name=row["name"],
            url=row["url"],
            type=row["type"],
            active=bool(row["active"]),
            search_endpoint=row["search_endpoint"] or "",
            last_scanned=from_iso(row["last_scanned"]),
            total_tenders=row["total_tenders"] or 0,
            new_tenders=row["new_tenders"] or 0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class Tender:
    """A procurement opportunity discovered on a portal."""

    id: str
    title: str
    portal_id: str
    organization: str = ""
    description: str = ""
    value: Optional[float] = None
    publish_date: Optional[datetime] = None
    submission_deadline: Optional[datetime] = None
    location: str = ""
    category: str = ""
    keywords: List[str] = field(default_factory=list)
    source: str = ""
    source_url: str = ""
    discovered: Optional[datetime] = None
    status: str = "active"
    priority: str = "medium"
    added_date: Optional[datetime] = None
    matched_keyword: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Tender":
        return cls(
            id=row["tender_id"],
            title=row["title"],
            portal_id=row["portal_id"],
            organization=row["organization"] or "",
            description=row["description"] or "",
            value=row["value"],
            publish_date=from_iso(row["publish_date"]),
            submission_deadline=from_iso(row["submission_deadline"]),
            location=row["location"] or "",
            category=row["category"] or "",
            keywords=json.loads(row["keywords"]) if row["keywords"] else [],
            source=row["source"] or "",
            source_url=row["source_url"] or "",
            discovered=from_iso(row["discovered"]),
            status=row["status"] or "active",
            priority=row["priority"] or "medium",
            added_date=from_iso(row["added_date"]),
            matched_keyword=row["matched_keyword"],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary (timestamps as ISO strings)."""
        data = asdict(self)
        for key in ("publish_date", "submission_deadline", "discovered", "added_date"):
            data[key] = to_iso(data[key])
        return data


@dataclass
class Notification:
    """A notification raised by the monitor."""

    type: str
    title: str
    message: str
    category: str = "tender"
    priority: str = "medium"
    data: Dict[str, Any] = field(default_factory=dict)
    channels: List[str] = field(default_factory=lambda: [CHANNEL_DASHBOARD])
    created: datetime = field(default_factory=datetime.now)
    read: bool = False
    id: Optional[int] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Notification":
        return cls(
            id=row["id"],
            type=row["type"],
            title=row["title"],
            message=row["message"],
            category=row["category"] or "",
            priority=row["priority"] or "medium",
            data=json.loads(row["data"]) if row["data"] else {},
            channels=json.loads(row["channels"]) if row["channels"] else [],
            created=from_iso(row["created"]),
            read=bool(row["read"]),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["created"] = to_iso(self.created)
        # Round-trip through JSON so nested datetimes become strings
        data["data"] = json.loads(dump_json(self.data))
        return data
