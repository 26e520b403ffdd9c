"""
Custom exceptions for the resource model.
"""
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .issues import ModelIssue


class ResourceModelError(Exception):
    """Base exception for resource model errors."""

    pass


class ConfigurationError(ResourceModelError):
    """Raised when a builder is built without a mandatory setting."""

    pass


class ParameterBindingError(ConfigurationError):
    """Raised when the parameters of a handling method cannot be bound."""

    def __init__(self, message="Failed to bind handler parameters", method=None):
        self.message = message
        self.method = method
        super().__init__(self.message)


class ClassificationError(ResourceModelError):
    """Raised when an HTTP method / path combination is neither a resource
    method, a sub-resource method nor a sub-resource locator."""

    def __init__(self, http_method: Optional[str], path: Optional[str]):
        self.http_method = http_method
        self.path = path
        super().__init__(
            f"Unknown resource method model type: HTTP method = '{http_method}', method path = '{path}'."
        )


class InternalConsistencyError(ResourceModelError):
    """Raised when builders are wired together incorrectly (double build, foreign builder)."""

    pass


class ModelValidationError(ResourceModelError):
    """Raised when a model carries fatal issues and the caller asked to fail on them."""

    def __init__(self, issues: List["ModelIssue"], message: str = "Resource model contains fatal issues"):
        self.issues = list(issues)
        self.message = message
        details = "; ".join(issue.message for issue in self.issues)
        super().__init__(f"{message}: {details}" if details else message)
