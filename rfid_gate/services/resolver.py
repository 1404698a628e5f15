# =======================================================================================
# rfid_gate/services/resolver.py - Resident Resolution with Bounded Retry
# =======================================================================================
import logging
from typing import Optional
from ..models.enums import Collections
from ..models.schemas import ResidentRecord
from ..utils.exceptions import StoreError
from .resident_cache import ResidentCache
from .store import DocumentStore

logger = logging.getLogger(__name__)


class ResidentResolver:
    """Maps a tag to its resident record, retrying transient store failures."""

    def __init__(self, store: DocumentStore, retries: int = 3, cache: Optional[ResidentCache] = None):
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.store = store
        self.retries = retries
        self.cache = cache

    def fetch(self, tag: str) -> Optional[ResidentRecord]:
        """
        One initial attempt plus up to `retries` immediate re-attempts.
        Returns None when the tag has no resident document.
        Raises StoreError once every attempt has failed.
        """
        attempts = self.retries + 1
        last_error: Optional[StoreError] = None
        for attempt in range(1, attempts + 1):
            try:
                data = self.store.get(Collections.RESIDENTS, tag)
            except StoreError as e:
                last_error = e
                logger.warning("[resolver] Lookup of %s failed (attempt %d/%d): %s", tag, attempt, attempts, e)
                continue
            return ResidentRecord(tag=tag, data=data) if data is not None else None

        raise StoreError(f"Failed to fetch resident {tag} after {attempts} attempts: {last_error}")

    def resolve(self, tag: str) -> Optional[ResidentRecord]:
        """
        Lookup used by the access pipeline. Always reads the store, since
        `assigned` is flipped outside this process; the cache only keeps the
        last state seen for each tag.
        """
        record = self.fetch(tag)
        if self.cache is not None:
            if record is not None:
                self.cache.put(record)
            else:
                self.cache.invalidate(tag)
        return record
