# =======================================================================================
# rfid_gate/workers/__init__.py - Workers Package
# =======================================================================================
from .heartbeat import LivenessPulse
from .serial_worker import SerialWorker
from .supervisor import ReaderSupervisor

__all__ = ["LivenessPulse", "SerialWorker", "ReaderSupervisor"]
