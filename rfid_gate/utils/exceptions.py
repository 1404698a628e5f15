# =======================================================================================
# rfid_gate/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class GateAccessError(Exception):
    """Base exception for the RFID gate access bridge."""
    pass

class InvalidTagError(GateAccessError):
    """Raised when a scanned payload is not an 8 character hex tag."""
    pass

class StoreError(GateAccessError):
    """Raised when the resident/audit store cannot be read or written."""
    pass

class ChannelWriteError(GateAccessError):
    """Raised when a response cannot be written to a reader channel."""
    pass

class PortOpenError(GateAccessError):
    """Raised when a reader's serial port cannot be opened."""
    pass

class UnknownChannelError(GateAccessError):
    """Raised when a channel name is not configured."""
    pass
