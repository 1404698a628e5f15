# =======================================================================================
# rfid_gate/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "GateAccessError", "InvalidTagError", "StoreError", "ChannelWriteError",
    "PortOpenError", "UnknownChannelError", "TagValidator", "TAG_PATTERN", "PING_TOKEN",
]
