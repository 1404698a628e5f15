# =======================================================================================
# rfid_gate/services/__init__.py - Services Package
# =======================================================================================
from .access_control import AccessControlService
from .audit_service import AuditService
from .cooldown import CooldownGate
from .dispatcher import ChannelDispatcher, ChannelSink
from .enrollment import EnrollmentService
from .resident_cache import ResidentCache
from .resolver import ResidentResolver
from .store import DocumentStore, SqlDocumentStore, build_store

__all__ = [
    "AccessControlService", "AuditService", "CooldownGate", "ChannelDispatcher",
    "ChannelSink", "EnrollmentService", "ResidentCache", "ResidentResolver",
    "DocumentStore", "SqlDocumentStore", "build_store",
]
