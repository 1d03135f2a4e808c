"""
New-tender detection.

A tender is new when its (portal_id, id) pair has never been stored.
Each new record is written as soon as it is found.
"""

import logging
from datetime import datetime
from typing import Iterable, List

from database.db import Database, PersistenceFailure
from database.models import Tender

logger = logging.getLogger(__name__)


class DeduplicationStore:
    """Filters fetched candidates down to the ones not seen before."""

    def __init__(self, db: Database):
        self.db = db

    def filter_new(self, candidates: Iterable[Tender], portal_id: str) -> List[Tender]:
        """
        Return the candidates not yet stored for a portal, storing each one.

        Order is preserved. A candidate repeated within the same batch is only
        considered once. A record that cannot be stored is dropped and the
        rest of the batch is still processed.

        Args:
            candidates: Freshly fetched tenders
            portal_id: Portal the candidates belong to

        Returns:
            The newly stored tenders
        """
        seen = self.db.get_tender_ids(portal_id)
        new_tenders = []
        duplicates = 0
        failures = 0

        for tender in candidates:
            if tender.id in seen:
                duplicates += 1
                continue
            seen.add(tender.id)

            tender.portal_id = portal_id
            if tender.added_date is None:
                tender.added_date = datetime.now()

            try:
                inserted = self.db.insert_tender(tender)
            except PersistenceFailure as e:
                failures += 1
                logger.error(f"Dropping tender {tender.id}: {e}")
                continue

            if inserted:
                new_tenders.append(tender)
            else:
                # Stored by another writer since the id set was loaded
                duplicates += 1

        logger.debug(
            f"{portal_id}: {len(new_tenders)} new, {duplicates} known, {failures} failed"
        )
        return new_tenders
