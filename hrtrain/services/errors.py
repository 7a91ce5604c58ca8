"""Exceptions raised by the service layer."""
from typing import List


class RefusalError(Exception):
    """
    Raised when an action is refused by the rules.
    This is NOT a fault - it's the system working correctly.
    """
    def __init__(self, message: str, forbidden: bool = False):
        self.message = message
        self.forbidden = forbidden
        super().__init__(self.message)


class PersistenceError(Exception):
    """
    Raised when the persistence collaborator fails.

    Local in-memory state is kept as it was after the optimistic update;
    the remote copy may be stale.
    """
    def __init__(self, message: str, record_ids: List[str] = None):
        self.message = message
        self.record_ids = record_ids or []
        super().__init__(self.message)
