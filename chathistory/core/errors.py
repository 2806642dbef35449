# chathistory/core/errors.py
"""
Error taxonomy for history reads.

- InvalidArgument: bad request parameters, raised before any store access.
- DependencyUnavailable: store/cache failure; aborts the whole request.
- DataIntegrityGap: an index row points at missing content or identity.
  Only ever raised and caught inside the assembler (the row is dropped).
"""


class ChatHistoryError(Exception):
    """Base class for chat history errors."""

    status_code = 500
    public_message = "internal error"


class InvalidArgument(ChatHistoryError):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.public_message = message


class DependencyUnavailable(ChatHistoryError):
    status_code = 500
    public_message = "history service temporarily unavailable"


class DataIntegrityGap(ChatHistoryError):
    def __init__(self, reason: str, *, entry_id: int | None = None):
        super().__init__(reason)
        self.reason = reason
        self.entry_id = entry_id
