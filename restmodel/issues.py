"""
Resource model issues found while introspecting or validating a model.
"""

from typing import Any, Dict, Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ModelValidationError


class ModelIssue(BaseModel):
    """A single problem found in a resource model.

    Fatal issues make the model unusable; non-fatal ones are diagnostics
    only. Issues are collected in a caller-owned list rather than raised so
    that a caller modelling many handler classes can report every problem at
    once.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    source: Any = Field(
        ...,
        description="The model element (class, method, field or resource) the issue was found on"
    )

    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )

    fatal: bool = Field(
        False,
        description="Whether the issue prevents the model from being used"
    )

    def summary(self) -> Dict[str, Any]:
        """Return a JSON-serialisable description of the issue."""
        source = self.source
        source_name = getattr(source, "__qualname__", None) or getattr(source, "name", None) or repr(source)
        return {
            "source": source_name,
            "message": self.message,
            "fatal": self.fatal,
        }


def fatal_issues(issues: Iterable[ModelIssue]) -> List[ModelIssue]:
    return [issue for issue in issues if issue.fatal]


def has_fatal_issues(issues: Iterable[ModelIssue]) -> bool:
    """Check whether any of the issues is fatal."""
    return any(issue.fatal for issue in issues)


def raise_for_fatal(issues: Iterable[ModelIssue]) -> None:
    """Raise ModelValidationError carrying the fatal issues, if there are any."""
    fatal = fatal_issues(issues)
    if fatal:
        raise ModelValidationError(fatal)
