# =======================================================================================
# rfid_gate/api/routes/scan.py - Scan Endpoints
# =======================================================================================
from fastapi import APIRouter, Depends, HTTPException
from ...models.schemas import ScanRequest, ScanResponse
from ...utils.exceptions import UnknownChannelError
from ...workers.supervisor import ReaderSupervisor
from ..dependencies import get_supervisor

router = APIRouter()

@router.post("/scan", response_model=ScanResponse)
def inject_scan(request: ScanRequest, supervisor: ReaderSupervisor = Depends(get_supervisor)):
    """Feed a raw line into a channel exactly as if its reader had sent it."""
    try:
        dispatcher = supervisor.get(request.channel)
    except UnknownChannelError as e:
        raise HTTPException(status_code=404, detail=str(e))

    work = dispatcher.on_scan(request.raw)
    if work is None:
        return ScanResponse(channel=dispatcher.name, queued=False,
                            message="Dropped (ping, invalid tag, queued or cooling down)")
    return ScanResponse(channel=dispatcher.name, queued=True, message="Queued for processing")
