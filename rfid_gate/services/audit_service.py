# =======================================================================================
# rfid_gate/services/audit_service.py - Audit Trail Writer
# =======================================================================================
import logging
from ..models.enums import ChannelKind, Collections, Outcome
from ..models.schemas import AuditRecord
from ..utils.exceptions import StoreError
from .store import DocumentStore

logger = logging.getLogger(__name__)


class AuditService:
    """
    Writes one audit sequence per decision:
    1. append to the all-events collection (key `tag-epoch_us`)
    2. Accepted -> replace the tag's entry in the per-direction latest collection
       Denied*  -> append to the denied collection
       Error    -> nothing further
    Store failures, and anything unexpected, are logged and swallowed; the reader
    has already been answered.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    @staticmethod
    def latest_collection(kind: ChannelKind) -> str:
        return Collections.LATEST_EXIT if kind is ChannelKind.EXIT else Collections.LATEST_ENTRY

    def record(self, entry: AuditRecord) -> bool:
        """Returns True when every write of the sequence succeeded."""
        try:
            return self._write(entry)
        except Exception as e:
            logger.exception("[audit] Unexpected error logging %s on %s: %s", entry.tag, entry.channel, e)
            return False

    def _write(self, entry: AuditRecord) -> bool:
        document = entry.to_document()
        try:
            self.store.set(Collections.ALL_EVENTS, entry.event_key, document)
        except StoreError as e:
            logger.error("[audit] Failed to log %s on %s: %s", entry.tag, entry.channel, e)
            return False

        try:
            if entry.decision is Outcome.ACCEPTED:
                self.store.set(self.latest_collection(entry.kind), entry.tag, document)
            elif entry.decision.is_denied:
                self.store.set(Collections.DENIED, entry.event_key, document)
        except StoreError as e:
            logger.error("[audit] Failed to write %s record for %s: %s", entry.status, entry.tag, e)
            return False

        logger.debug("[audit] Logged %s for %s on %s", entry.status, entry.tag, entry.channel)
        return True
