# =======================================================================================
# rfid_gate/models/schemas.py - Pydantic Models
# =======================================================================================
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from .enums import AuditStatus, ChannelKind, Outcome

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# ========== Channels ==========
class ChannelSpec(BaseModel):
    """One physical reader as configured."""
    name: str = Field(..., min_length=1, description="Human name, e.g. 'Vehicle Entry'")
    kind: ChannelKind
    port: str = Field(..., description="Serial device path, e.g. /dev/ttyUSB0 or COM4")

class ChannelStatus(BaseModel):
    name: str
    kind: ChannelKind
    port: str
    connected: bool
    queue_depth: int
    cooldown_entries: int

# ========== Residents + Decisions ==========
class ResidentRecord(BaseModel):
    """Resident document as stored under its tag. Only `assigned` is interpreted."""
    tag: str
    data: Dict[str, Any] = Field(default_factory=dict)

    @property
    def has_assigned_field(self) -> bool:
        return "assigned" in self.data

    @property
    def assigned(self) -> Optional[Any]:
        return self.data.get("assigned")

class Decision(BaseModel):
    outcome: Outcome
    reason: str
    kind: ChannelKind
    response: str

class AuditRecord(BaseModel):
    """One audit entry per decision."""
    tag: str
    timestamp: datetime
    decision: Outcome
    channel: str
    kind: ChannelKind
    message: str

    @property
    def status(self) -> AuditStatus:
        if self.decision is Outcome.ACCEPTED:
            return "accepted"
        if self.decision.is_denied:
            return "denied"
        return "error"

    @property
    def event_key(self) -> str:
        """`tag-epoch_us`; unique per scan as long as timestamps come from ScanClock."""
        ts = self.timestamp if self.timestamp.tzinfo else self.timestamp.replace(tzinfo=timezone.utc)
        epoch_us = (ts - EPOCH) // timedelta(microseconds=1)
        return f"{self.tag}-{epoch_us}"

    def to_document(self) -> Dict[str, Any]:
        return {
            "rfidTag": self.tag,
            "timestamp": self.timestamp.isoformat(),
            "status": self.status,
            "mode": self.channel,
            "decision": self.decision.value,
            "message": self.message,
        }

# ========== Ops API ==========
class HealthResponse(BaseModel):
    status: str                 # "ok" | "error"
    dataAvailable: bool
    channels: int = 0
    connectedChannels: int = 0
    residentCacheEntries: int = 0
    message: Optional[str] = None

class ChannelsResponse(BaseModel):
    channels: List[ChannelStatus]

class PingResult(BaseModel):
    name: str
    sent: bool
    error: Optional[str] = None

class PingResponse(BaseModel):
    results: List[PingResult]

class ScanRequest(BaseModel):
    """Inject a raw reader line into a channel, as if the reader had sent it."""
    channel: str = Field(..., description="Configured channel name")
    raw: str = Field(..., min_length=1, max_length=100, description="Raw line content")

class ScanResponse(BaseModel):
    channel: str
    queued: bool
    message: str
