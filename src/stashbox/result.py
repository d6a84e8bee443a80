"""Result type for internal helpers.

Store helpers return ``Ok(value)`` or ``Err(error)`` instead of raising, so
the cache facade can fold every failure into its error record without
wrapping each call in ``try``/``except``.

Examples:
    >>> from stashbox.result import Ok, Err
    >>> Ok(3).map(lambda x: x + 1).unwrap()
    4
    >>> Err(ValueError("boom")).unwrap_or(0)
    0
"""

from dataclasses import dataclass
from typing import Any, Callable, Generic, Tuple, Type, TypeVar, Union

from stashbox.errors import StashboxError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> "Result[U]":
        """Transform the value."""
        return Ok(f(self.value))

    def and_then(self, f: Callable[[T], "Result[U]"]) -> "Result[U]":
        """Chain to another Result-returning function."""
        return f(self.value)


@dataclass(frozen=True)
class Err(Generic[T]):
    """Failed result containing an error."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Raise the wrapped error."""
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> "Result[U]":
        return self  # type: ignore[return-value]

    def and_then(self, f: Callable[[T], "Result[U]"]) -> "Result[U]":
        return self  # type: ignore[return-value]


Result = Union[Ok[T], Err[T]]


def try_result(
    f: Callable[..., T],
    *args: Any,
    catch: Tuple[Type[Exception], ...] = (StashboxError,),
    **kwargs: Any,
) -> "Result[T]":
    """Call ``f`` and wrap its return value or raised error.

    Only exceptions listed in ``catch`` are converted; anything else
    propagates.

    Examples:
        >>> try_result(int, "12")
        Ok(value=12)
        >>> try_result(int, "x", catch=(ValueError,)).is_err()
        True
    """
    try:
        return Ok(f(*args, **kwargs))
    except catch as e:
        return Err(e)
