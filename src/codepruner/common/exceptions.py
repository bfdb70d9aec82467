"""CodePruner exception hierarchy."""

from typing import Optional


class PrunerError(Exception):
    """Base exception for all CodePruner errors."""

    def __init__(self, message: str = "", code: str = "PRUNER_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class BatchValidationError(PrunerError):
    """Raised when a tracking batch fails validation.

    The whole batch is rejected; ``index`` and ``field`` point at the first
    offending item. Both are None when the payload shape itself is wrong.
    """

    def __init__(
        self,
        message: str = "Invalid tracking payload",
        index: Optional[int] = None,
        field: Optional[str] = None,
    ):
        self.index = index
        self.field = field
        super().__init__(message, code="INVALID_PAYLOAD")


class TenantNotFoundError(PrunerError):
    """Raised when a tenant (project) cannot be found."""

    def __init__(self, message: str = "Project not found"):
        super().__init__(message, code="NOT_FOUND")


class AnalysisError(PrunerError):
    """Raised when endpoint analysis fails for a tenant."""

    def __init__(self, message: str = "Endpoint analysis failed"):
        super().__init__(message, code="ANALYSIS_FAILED")
