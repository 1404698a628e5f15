# =======================================================================================
# rfid_gate/utils/validators.py - Validation Helpers
# =======================================================================================
import re

from .exceptions import InvalidTagError

TAG_PATTERN = re.compile(r"^[0-9A-F]{8}$", re.IGNORECASE)
PING_TOKEN = "ping"


class TagValidator:
    """Normalizes and validates raw scan payloads coming off a reader line."""

    @staticmethod
    def is_ping(raw: str) -> bool:
        """A bare `ping` (any case) is the reader echoing our keep-alive."""
        return raw.strip().lower() == PING_TOKEN

    @staticmethod
    def validate(raw: str) -> str:
        """Return the upper-cased tag, or raise InvalidTagError."""
        candidate = raw.strip()
        if not TAG_PATTERN.fullmatch(candidate):
            raise InvalidTagError(f"Invalid tag payload: {candidate!r}")
        return candidate.upper()
