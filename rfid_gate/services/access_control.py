# =======================================================================================
# rfid_gate/services/access_control.py - Core Business Logic
# =======================================================================================
from typing import Optional
from ..models.enums import ChannelKind, Outcome, ReaderResponse
from ..models.schemas import Decision, ResidentRecord

REASON_UNKNOWN = "tag not found in resident store"
REASON_UNASSIGNED = "tag exists but is not assigned to a resident"
REASON_NO_FIELD = "resident record missing assigned field"

# Response text per outcome; the readers only ever see these strings.
RESPONSES = {
    Outcome.ACCEPTED: ReaderResponse.RESIDENT_FOUND,
    Outcome.DENIED_UNASSIGNED: ReaderResponse.ASSIGN_NEEDED,
    Outcome.DENIED_UNKNOWN: ReaderResponse.RESIDENT_NOT_FOUND,
    Outcome.DENIED_NO_ASSIGNED_FIELD: ReaderResponse.RESIDENT_NOT_FOUND,
    Outcome.ERROR: ReaderResponse.ERROR,
}


class AccessControlService:
    """Pure mapping from resident state and channel kind to an access decision."""

    @staticmethod
    def granted_reason(kind: ChannelKind) -> str:
        direction = "Exit" if kind is ChannelKind.EXIT else "Entry"
        return f"resident found, {direction} granted"

    @staticmethod
    def decide(record: Optional[ResidentRecord], kind: ChannelKind) -> Decision:
        """
        Decision table:
        - no record               -> DeniedUnknown
        - assigned is True        -> Accepted
        - assigned is False       -> DeniedUnassigned
        - assigned missing        -> DeniedNoAssignedField
        - assigned not a bool     -> DeniedNoAssignedField
        """
        if record is None:
            outcome, reason = Outcome.DENIED_UNKNOWN, REASON_UNKNOWN
        elif not record.has_assigned_field:
            outcome, reason = Outcome.DENIED_NO_ASSIGNED_FIELD, REASON_NO_FIELD
        elif record.assigned is True:
            outcome, reason = Outcome.ACCEPTED, AccessControlService.granted_reason(kind)
        elif record.assigned is False:
            outcome, reason = Outcome.DENIED_UNASSIGNED, REASON_UNASSIGNED
        else:
            outcome, reason = Outcome.DENIED_NO_ASSIGNED_FIELD, REASON_NO_FIELD
        return Decision(outcome=outcome, reason=reason, kind=kind, response=RESPONSES[outcome])

    @staticmethod
    def error(exc: Exception, kind: ChannelKind) -> Decision:
        """Decision for a scan whose resolution failed."""
        return Decision(
            outcome=Outcome.ERROR,
            reason=str(exc),
            kind=kind,
            response=RESPONSES[Outcome.ERROR],
        )
