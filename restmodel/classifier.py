"""
Classification of resource methods by HTTP method and path.
"""

from enum import Enum
from typing import Optional

from .exceptions import ClassificationError
from .pattern import END_OF_PATH_PATTERN, PathPattern, RightHandPath


class EndpointKind(Enum):
    """The three kinds of routable resource methods."""

    # Bound to an HTTP method, no path of its own
    RESOURCE_METHOD = "resource_method"
    # Bound to an HTTP method and to a sub-path that must consume the rest of the request path
    SUB_RESOURCE_METHOD = "sub_resource_method"
    # Not bound to an HTTP method; returns a sub-resource that continues the matching
    SUB_RESOURCE_LOCATOR = "sub_resource_locator"

    def create_pattern_for(self, path_template: str) -> PathPattern:
        """Create the matching path pattern for a method of this kind."""
        if self is EndpointKind.RESOURCE_METHOD:
            # template is ignored
            return END_OF_PATH_PATTERN
        if self is EndpointKind.SUB_RESOURCE_METHOD:
            return PathPattern(path_template, RightHandPath.ZERO_SEGMENTS)
        return PathPattern(path_template, RightHandPath.ZERO_OR_MORE_SEGMENTS)


def classify(http_method: Optional[str], path: Optional[str]) -> EndpointKind:
    """Classify a resource method.

    Args:
        http_method: HTTP method name, or None for a sub-resource locator
        path: Method path template, empty for a plain resource method

    Returns:
        The endpoint kind

    Raises:
        ClassificationError: If the combination is none of the three kinds
            (no HTTP method and no path, or an empty HTTP method name)
    """
    path = path or ""
    if http_method is not None:
        if http_method:
            if path == "" or path == "/":
                return EndpointKind.RESOURCE_METHOD
            return EndpointKind.SUB_RESOURCE_METHOD
    elif path:
        return EndpointKind.SUB_RESOURCE_LOCATOR

    raise ClassificationError(http_method, path)
