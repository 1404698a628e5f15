# =======================================================================================
# rfid_gate/models/__init__.py - Models Package
# =======================================================================================
from .schemas import *
from .enums import *

__all__ = [
    "ChannelSpec", "ChannelStatus", "ResidentRecord", "Decision", "AuditRecord",
    "HealthResponse", "ChannelsResponse", "PingResult", "PingResponse",
    "ScanRequest", "ScanResponse", "AuditStatus", "ChannelKind",
    "Outcome", "ReaderResponse", "Collections",
]
