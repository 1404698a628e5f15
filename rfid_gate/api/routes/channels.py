# =======================================================================================
# rfid_gate/api/routes/channels.py - Channel Status + Ping Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import ChannelsResponse, PingResponse
from ...workers.supervisor import ReaderSupervisor
from ..dependencies import get_supervisor

router = APIRouter()

@router.get("/channels", response_model=ChannelsResponse)
def list_channels(supervisor: ReaderSupervisor = Depends(get_supervisor)):
    """Connection state, queue depth and cooldown size per reader."""
    return ChannelsResponse(channels=supervisor.status())

@router.post("/channels/ping", response_model=PingResponse)
def ping_channels(supervisor: ReaderSupervisor = Depends(get_supervisor)):
    return PingResponse(results=supervisor.ping_all())
