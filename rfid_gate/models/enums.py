# =======================================================================================
# rfid_gate/models/enums.py - Enums and Constants
# =======================================================================================
from enum import Enum
from typing import Literal

# Type aliases for better type hints
AuditStatus = Literal["accepted", "denied", "error"]

class ChannelKind(Enum):
    """What a physical reader is wired to do."""
    ENTRY = "Entry"
    EXIT = "Exit"
    ENROLL = "Enroll"

    @classmethod
    def parse(cls, value: str) -> "ChannelKind":
        for kind in cls:
            if kind.value.lower() == value.strip().lower():
                return kind
        raise ValueError(f"Unknown channel kind: {value!r}")

class Outcome(Enum):
    """Access decision outcomes."""
    ACCEPTED = "Accepted"
    DENIED_UNASSIGNED = "DeniedUnassigned"
    DENIED_UNKNOWN = "DeniedUnknown"
    DENIED_NO_ASSIGNED_FIELD = "DeniedNoAssignedField"
    ERROR = "Error"

    @property
    def is_denied(self) -> bool:
        return self in (
            Outcome.DENIED_UNASSIGNED,
            Outcome.DENIED_UNKNOWN,
            Outcome.DENIED_NO_ASSIGNED_FIELD,
        )

class ReaderResponse:
    """Fixed vocabulary written back to the readers."""
    RESIDENT_FOUND = "Resident Found"
    RESIDENT_NOT_FOUND = "Resident Not Found"
    ASSIGN_NEEDED = "Resident Not Found - Assign Needed"
    NEW_RESIDENT = "New Resident Created"
    NOT_ASSIGNED = "UID Not Assigned"
    ERROR = "Error"
    PING = "ping"

class Collections:
    """Store collection names."""
    RESIDENTS = "residents"
    ALL_EVENTS = "all_rfid_logs"
    LATEST_ENTRY = "latest_accepted_entry_log"
    LATEST_EXIT = "latest_exit_log"
    DENIED = "denied_uid"
