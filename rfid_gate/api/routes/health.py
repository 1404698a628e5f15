# =======================================================================================
# rfid_gate/api/routes/health.py - Health Endpoint
# =======================================================================================
from fastapi import APIRouter, Depends
from ...models.schemas import HealthResponse
from ...utils.exceptions import StoreError
from ...workers.supervisor import ReaderSupervisor
from ..dependencies import get_supervisor

router = APIRouter()

@router.get("/health", response_model=HealthResponse)
def api_health(supervisor: ReaderSupervisor = Depends(get_supervisor)):
    channels = supervisor.status()
    connected = sum(1 for c in channels if c.connected)
    try:
        supervisor.store.ping()
    except StoreError as e:
        return HealthResponse(status="error", dataAvailable=False, channels=len(channels),
                              connectedChannels=connected, residentCacheEntries=len(supervisor.cache),
                              message=str(e))
    return HealthResponse(status="ok", dataAvailable=True, channels=len(channels),
                          connectedChannels=connected, residentCacheEntries=len(supervisor.cache))
