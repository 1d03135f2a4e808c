"""
Source for NIC GePNIC e-procurement portals.

URL: https://etenders.gov.in/eprocure/app?page=FrontEndLatestActiveTenders&service=page
The Central Public Procurement Portal and most state portals (Kerala
included) run the same GePNIC software and share the "Latest Active
Tenders" table layout:

    S.No | e-Published Date | Closing Date | Opening Date |
    Title and Ref.No./Tender ID | Organisation Chain
"""

from datetime import datetime
from typing import List, Optional

from bs4 import BeautifulSoup

from database.models import Portal, Tender
from sources.base import FetchParseError
from sources.registry import register_source
from sources.utils import clean_text, extract_bracketed, normalize_url, parse_portal_date
from sources.web import HttpTenderSource


@register_source
class NicGepSource(HttpTenderSource):
    """Scraper for GePNIC "Latest Active Tenders" listings."""

    SOURCE_NAME = "nic_gep"
    WAIT_SELECTOR = "table#table"

    TABLE_SELECTOR = "table#table"
    MIN_COLUMNS = 6

    def parse(self, soup: BeautifulSoup, portal: Portal) -> List[Tender]:
        table = soup.select_one(self.TABLE_SELECTOR)
        if table is None:
            raise FetchParseError(portal.id, "Tender listing table not found")

        now = datetime.now()
        results = []

        rows = table.select("tr")
        self.logger.debug(f"Found {len(rows)} rows on {portal.id}")

        for row in rows:
            cells = row.find_all("td")
            if len(cells) < self.MIN_COLUMNS:
                # header and pager rows
                continue

            tender = self._parse_row(cells, portal, now)
            if tender:
                results.append(tender)

        return results

    def _parse_row(self, cells, portal: Portal, now: datetime) -> Optional[Tender]:
        title_cell = cells[4]
        parts = extract_bracketed(title_cell.get_text(" "))
        if not parts:
            self.logger.warning(f"Skipping row without title on {portal.id}")
            return None

        title = parts[0]
        tender_id = parts[-1] if len(parts) > 1 else ""
        if not tender_id:
            self.logger.warning(f"Skipping '{title}' on {portal.id}: no tender id")
            return None

        link = title_cell.find("a")
        href = link.get("href") if link else ""

        organization_chain = clean_text(cells[5].get_text())
        organization = organization_chain.split("||")[0].strip()

        return Tender(
            id=tender_id,
            title=title,
            portal_id=portal.id,
            organization=organization,
            description=organization_chain,
            publish_date=parse_portal_date(cells[1].get_text()),
            submission_deadline=parse_portal_date(cells[2].get_text()),
            source=portal.name,
            source_url=normalize_url(href, portal.url) or portal.url,
            discovered=now,
            status="active",
        )
