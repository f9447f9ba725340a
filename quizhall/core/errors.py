class StoreError(Exception):
    """Failure reported by the relational store."""


class StoreConnectionError(StoreError):
    """The store could not be reached or the connection was lost mid-call."""


class ConstraintViolationError(StoreError):
    """A uniqueness, check or foreign-key constraint rejected the write."""
