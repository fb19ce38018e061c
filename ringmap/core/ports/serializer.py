from typing import Protocol, Any


class Serializer(Protocol):
    """
    Defines the interface for encoding/decoding topology snapshots.

    Implementations must be:
    - deterministic
    - pure (no side effects)
    - safe against malformed input
    """

    def serialize(self, message: Any) -> bytes:
        """Encode a Python object into bytes."""

    def deserialize(self, data: bytes) -> Any:
        """Decode bytes back into a Python object."""
