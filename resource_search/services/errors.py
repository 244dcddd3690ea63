"""Domain errors raised by the resource services and mapped to HTTP codes in the API layer."""


class InvalidSearchParameterError(ValueError):
    """Raised when a search parameter (limit, cursor, type filter) is malformed."""


class ResourceValidationError(ValueError):
    """Raised when resource fields fail validation on create or update."""


class ResourceNotFoundError(Exception):
    """Raised when a resource does not exist (or is hidden from the caller)."""


class ResourceAccessDeniedError(Exception):
    """Raised when an actor may not modify a resource."""
