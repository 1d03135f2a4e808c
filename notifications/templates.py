"""
Email templates for the Tender Portal Monitor.

Plain-text body for the per-tender email.
"""

from datetime import datetime
from typing import Any, Dict, Optional


def _fmt_date(value: Optional[datetime]) -> str:
    return value.strftime("%d-%b-%Y") if value else "-"


def _fmt_value(value: Optional[float]) -> str:
    return f"INR {value:,.0f}" if value else "-"


class EmailTemplates:
    """Email body generator for tender notifications."""

    HEADER = """This is an automatically generated email.
Please do not reply directly.

Generated: {timestamp}
"""

    TENDER_FORMAT = """
A new tender has been found: {title}

Organization:\t {organization}
Value:\t\t {value}
Deadline:\t {deadline}
Priority:\t {priority}
Portal:\t\t {portal}

View details: {link}
"""

    FOOTER = """
---------------------------------------------------------------
KMRL Tender Portal Monitor
---------------------------------------------------------------
"""

    @classmethod
    def format_tender_email(
        cls,
        tender: Dict[str, Any],
        portal_name: str,
        timestamp: datetime,
    ) -> str:
        """
        Format the body of a new-tender email.

        Args:
            tender: Tender fields (Tender.__dict__ style, datetimes allowed)
            portal_name: Display name of the portal
            timestamp: When the email is generated

        Returns:
            Email body
        """
        parts = [cls.HEADER.format(timestamp=timestamp.strftime("%d-%b-%Y %H:%M:%S"))]

        parts.append(cls.TENDER_FORMAT.format(
            title=tender.get("title") or "-",
            organization=tender.get("organization") or "-",
            value=_fmt_value(tender.get("value")),
            deadline=_fmt_date(tender.get("submission_deadline")),
            priority=tender.get("priority") or "-",
            portal=portal_name,
            link=tender.get("source_url") or "-",
        ))

        parts.append(cls.FOOTER)
        return "\n".join(parts)

