"""
Decorators declaring resource metadata on handler classes and methods.

Example::

    @path("users")
    @produces("application/json")
    class UsersResource:

        @GET
        def list_users(self) -> List[User]:
            ...

        @POST
        @consumes("application/json")
        def create_user(self, user: User) -> User:
            ...

        @GET
        @path("{id}")
        def get_user(self, user_id: Annotated[int, PathParam("id")]) -> User:
            ...

        @path("{id}/orders")
        def orders(self, user_id: Annotated[int, PathParam("id")]) -> "OrdersResource":
            ...

The decorators only record metadata on the decorated object; the
``AnnotationDescriptorSource`` reads it back.
"""

from typing import Any, Callable, List, TypeVar

HTTP_METHOD_ATTR = "_restmodel_http_method"
PATH_ATTR = "_restmodel_path"
CONSUMES_ATTR = "_restmodel_consumes"
PRODUCES_ATTR = "_restmodel_produces"
ENCODED_ATTR = "_restmodel_encoded"

T = TypeVar("T")


def http_method(name: str) -> Callable[[T], T]:
    """Create a decorator binding a method to an HTTP method.

    The standard methods are predefined (``GET``, ``POST`` ...); use this
    for extension methods::

        PROPFIND = http_method("PROPFIND")
    """
    if not isinstance(name, str):
        raise TypeError(f"HTTP method name must be a string, got {name!r}")

    def decorator(func: T) -> T:
        setattr(func, HTTP_METHOD_ATTR, name)
        return func

    decorator.__name__ = name
    return decorator


GET = http_method("GET")
POST = http_method("POST")
PUT = http_method("PUT")
DELETE = http_method("DELETE")
PATCH = http_method("PATCH")
HEAD = http_method("HEAD")
OPTIONS = http_method("OPTIONS")


def path(value: str) -> Callable[[T], T]:
    """Declare the path template of a resource class or of a sub-resource method / locator."""
    def decorator(obj: T) -> T:
        setattr(obj, PATH_ATTR, value)
        return obj

    return decorator


def _flatten(types: Any) -> List[str]:
    result: List[str] = []
    for t in types:
        if isinstance(t, (list, tuple)):
            result.extend(_flatten(t))
        else:
            result.append(str(t))
    return result


def consumes(*types: Any) -> Callable[[T], T]:
    """Declare the media types a class or method consumes. Method declarations override the class."""
    def decorator(obj: T) -> T:
        setattr(obj, CONSUMES_ATTR, _flatten(types))
        return obj

    return decorator


def produces(*types: Any) -> Callable[[T], T]:
    """Declare the media types a class or method produces. Method declarations override the class."""
    def decorator(obj: T) -> T:
        setattr(obj, PRODUCES_ATTR, _flatten(types))
        return obj

    return decorator


def encoded(cls: T) -> T:
    """Keep all parameter values of a resource class encoded."""
    setattr(cls, ENCODED_ATTR, True)
    return cls
