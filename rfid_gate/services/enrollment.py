# =======================================================================================
# rfid_gate/services/enrollment.py - Badge Enrollment ("Assign" reader)
# =======================================================================================
import logging
from typing import Optional
from ..models.enums import Collections, ReaderResponse
from ..utils.exceptions import StoreError
from .resident_cache import ResidentCache
from .resolver import ResidentResolver
from .store import DocumentStore

logger = logging.getLogger(__name__)


class EnrollmentService:
    """Read-or-create of resident documents for the enrollment reader."""

    def __init__(self, store: DocumentStore, resolver: ResidentResolver, cache: Optional[ResidentCache] = None):
        self.store = store
        self.resolver = resolver
        self.cache = cache

    def enroll(self, tag: str) -> str:
        """Return the reader response for an enrollment scan of `tag`."""
        try:
            record = self.resolver.fetch(tag)
            if record is None:
                self.store.set(Collections.RESIDENTS, tag, {"assigned": False})
                if self.cache is not None:
                    self.cache.invalidate(tag)
                logger.info("[enroll] New resident document created for %s (assigned=false)", tag)
                return ReaderResponse.NEW_RESIDENT

            if record.assigned is False:
                logger.info("[enroll] %s present but not assigned; assign it to a resident", tag)
                return ReaderResponse.NOT_ASSIGNED

            logger.info("[enroll] %s already assigned", tag)
            return ReaderResponse.RESIDENT_FOUND
        except StoreError as e:
            logger.error("[enroll] Error enrolling %s: %s", tag, e)
            return ReaderResponse.ERROR
