"""
Custom Application Exceptions
"""


class GudangException(Exception):
    """Base exception for the warehouse application"""

    kind = "error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(GudangException):
    """Raised when a referenced movement, batch, lot or item does not exist"""

    kind = "not_found"
    status_code = 404


class ValidationError(GudangException):
    """Raised when input or a business rule is violated, before any mutation"""

    kind = "validation_failure"
    status_code = 422


class PersistenceError(GudangException):
    """Raised when the database rejects a write"""

    kind = "persistence_failure"
    status_code = 500


class UpstreamError(GudangException):
    """Raised when the customs adapter call fails or returns non-success"""

    kind = "upstream_failure"
    status_code = 502
