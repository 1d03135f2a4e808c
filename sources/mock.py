"""
Synthetic tender source.

Stands in for portals that have no real scraper yet: after a simulated
network delay it fabricates a handful of plausible tender records. Ids are
drawn from a small per-portal reference window, so consecutive scans of
the same portal overlap the way a real listing page does.
"""

import random
import time
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from database.models import Portal, Tender
from sources.base import TenderSource
from sources.registry import register_source

TITLES = {
    "government": [
        "Metro Rail Infrastructure Development",
        "Railway Signal System Upgrade",
        "Public Transport Modernization",
        "Station Platform Construction",
        "Electrical Systems Installation",
        "Civil Construction Works",
        "Rolling Stock Maintenance",
        "Safety Systems Implementation",
    ],
    "private": [
        "Transportation Technology Solutions",
        "Infrastructure Engineering Services",
        "Metro Equipment Supply",
        "Railway Consulting Services",
        "Smart Transit Systems",
        "Maintenance and Operations",
        "Technical Support Services",
        "Equipment Procurement",
    ],
}

ORGANIZATIONS = {
    "government": [
        "Kerala Metro Rail Limited",
        "Indian Railways",
        "Kerala State Road Transport Corporation",
        "Public Works Department Kerala",
        "Kerala Water Authority",
        "Kochi Corporation",
        "Kerala State Electricity Board",
    ],
    "private": [
        "Metro Infrastructure Pvt Ltd",
        "Railway Solutions Inc",
        "Transport Tech Solutions",
        "Infrastructure Development Corp",
        "Engineering Services Ltd",
        "Construction and Projects",
        "Technology Systems Pvt Ltd",
    ],
}

DESCRIPTIONS = [
    "Comprehensive infrastructure development project for modern transportation systems",
    "Technical implementation and maintenance of railway safety systems",
    "Design and construction of metro station facilities and platforms",
    "Supply and installation of electrical and signaling equipment",
    "Civil engineering works for transportation infrastructure",
    "Maintenance and operational support for metro rail systems",
]

LOCATIONS = ["Kochi", "Ernakulam", "Kerala", "Thiruvananthapuram", "Kozhikode", "Thrissur"]

CATEGORIES = ["infrastructure", "electrical", "mechanical", "civil", "technology", "maintenance"]

KEYWORDS = ["metro", "railway", "transport", "infrastructure", "station", "platform", "safety"]


@register_source
class MockTenderSource(TenderSource):
    """Fabricates tender records for a portal."""

    SOURCE_NAME = "mock"

    def __init__(
        self,
        config: Dict[str, Any],
        logger=None,
        rng: Optional[random.Random] = None,
    ):
        super().__init__(config, logger)

        scraping_config = config.get("scraping", {})
        self.delay_min = scraping_config.get("mock_delay_min", 2.0)
        self.delay_max = scraping_config.get("mock_delay_max", 5.0)
        self.min_count = scraping_config.get("mock_min_tenders", 2)
        self.max_count = scraping_config.get("mock_max_tenders", 11)
        self.reference_window = scraping_config.get("mock_reference_window", 40)

        self.rng = rng or random.Random(scraping_config.get("mock_seed"))

    def fetch(self, portal: Portal) -> List[Tender]:
        """Simulate a network round trip and return fabricated tenders."""
        if self.delay_max > 0:
            time.sleep(self.rng.uniform(self.delay_min, self.delay_max))

        now = datetime.now()
        count = self.rng.randint(self.min_count, self.max_count)
        references = self.rng.sample(
            range(1, self.reference_window + 1),
            min(count, self.reference_window),
        )

        return [self._make_tender(portal, ref, now) for ref in references]

    def _make_tender(self, portal: Portal, reference: int, now: datetime) -> Tender:
        kind = portal.type if portal.type in TITLES else "government"

        return Tender(
            id=f"{portal.id}-{now.year}-{reference:04d}",
            title=self.rng.choice(TITLES[kind]),
            portal_id=portal.id,
            organization=self.rng.choice(ORGANIZATIONS[kind]),
            description=self.rng.choice(DESCRIPTIONS),
            value=float(self.rng.randint(500_000, 50_500_000)),
            publish_date=now + timedelta(days=self.rng.randint(-5, 0)),
            submission_deadline=now + timedelta(days=self.rng.randint(10, 60)),
            location=self.rng.choice(LOCATIONS),
            category=self.rng.choice(CATEGORIES),
            keywords=self._pick_keywords(),
            source=portal.name,
            source_url=portal.url,
            discovered=now,
            status="active",
        )

    def _pick_keywords(self) -> List[str]:
        count = self.rng.randint(2, 4)
        picked = []
        for _ in range(count):
            keyword = self.rng.choice(KEYWORDS)
            if keyword not in picked:
                picked.append(keyword)
        return picked
