"""Exception types shared by the services and routes."""


class LeadboardError(Exception):
    """Base class for errors raised by leadboard."""


class FilterValidationError(LeadboardError):
    """Raised when a filter or condition is built from invalid input."""


class NotFoundError(LeadboardError):
    """Raised when a command names a filter, group or condition that does not exist."""


class DocumentStoreError(LeadboardError):
    """Raised by a document store backend when a read or write fails."""
