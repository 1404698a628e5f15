# =======================================================================================
# rfid_gate/api/dependencies.py - FastAPI Dependencies
# =======================================================================================
from fastapi import HTTPException, Request
from ..workers.supervisor import ReaderSupervisor

def get_supervisor(request: Request) -> ReaderSupervisor:
    """Dependency to get the running reader supervisor."""
    supervisor = getattr(request.app.state, "supervisor", None)
    if supervisor is None:
        raise HTTPException(status_code=503, detail="Reader supervisor not initialised")
    return supervisor
