"""Cache facade contract and shared behavior.

Every backend implements :class:`CacheBackend` (get/set/delete/clear).
Backends that talk to a remote service also implement
:class:`ConnectedBackend`. :class:`BaseCache` supplies the enable/disable
gate and the error record; no public operation raises.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Protocol, TypeVar, runtime_checkable

from stashbox.expiration import TTL, coerce_ttl
from stashbox.result import Err, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorObserver = Callable[[Exception], None]


@runtime_checkable
class CacheBackend(Protocol):
    """Four-operation cache contract shared by all backends."""

    def get(self, key: str) -> Any:
        """Return the cached value, or None if absent, expired or disabled."""
        ...

    def set(self, key: str, value: Any, ttl: Optional[TTL] = None) -> "CacheBackend":
        """Store a value; returns the cache for chaining."""
        ...

    def delete(self, key: str) -> "CacheBackend":
        """Remove a key; absent keys are not an error."""
        ...

    def clear(self) -> "CacheBackend":
        """Remove every entry owned by the cache."""
        ...


@runtime_checkable
class ConnectedBackend(CacheBackend, Protocol):
    """Backend with a connection to a remote service."""

    def is_connected(self) -> bool:
        ...


class BaseCache(ABC):
    """Enable/disable gate and error record shared by all backends.

    Caches start disabled unless ``enabled=True``. While disabled, every
    operation is a no-op. Failures are appended to :attr:`errors`, logged,
    and forwarded to the observer set with :meth:`debug` (or ``on_error``).

    Args:
        on_error: Observer called with each recorded exception
        clock: Callable returning the current UNIX time in seconds
    """

    def __init__(
        self,
        on_error: Optional[ErrorObserver] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._errors: List[Exception] = []
        self._observer = on_error
        self._clock = clock
        self._enabled = False

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self):
        """Enable the cache (chainable). Check :attr:`enabled` for success."""
        return self.set_state(True)

    def disable(self):
        """Disable the cache (chainable)."""
        return self.set_state(False)

    def set_state(self, state: bool):
        """Enable or disable the cache.

        Activation failures are recorded and leave the cache disabled.
        """
        self._enabled = bool(state) and self._activate()
        return self

    def _activate(self) -> bool:
        """Prepare the backend for use; return False to stay disabled."""
        return True

    def _now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------------
    # Error record
    # ------------------------------------------------------------------

    @property
    def errors(self) -> List[Exception]:
        """Copy of every error recorded since creation or :meth:`clear_errors`."""
        return list(self._errors)

    @property
    def last_error(self) -> Optional[Exception]:
        return self._errors[-1] if self._errors else None

    def is_error(self) -> bool:
        return bool(self._errors)

    def clear_errors(self):
        self._errors.clear()
        return self

    def debug(self, observer: Optional[ErrorObserver] = None):
        """Set the error observer; call with no argument to remove it."""
        self._observer = observer
        return self

    def _record(self, error: Exception) -> None:
        self._errors.append(error)
        logger.warning(f"{self.__class__.__name__}: {error}")
        if self._observer is not None:
            try:
                self._observer(error)
            except Exception:
                logger.exception("Cache error observer raised")

    def _unwrap(self, result: Result[T], default: Optional[T] = None) -> Optional[T]:
        """Return a result's value, recording the error of an Err."""
        if isinstance(result, Err):
            self._record(result.error)
            return default
        return result.value

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------

    @abstractmethod
    def get(self, key: str) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any, ttl: Optional[TTL] = None):
        pass

    @abstractmethod
    def delete(self, key: str):
        pass

    @abstractmethod
    def clear(self):
        pass


class ExpiringCache(BaseCache):
    """Base for backends that store an expiry with each entry.

    Args:
        default_ttl: Seconds (or timedelta) applied when ``set`` gets no TTL
    """

    def __init__(self, default_ttl: TTL, **kwargs):
        super().__init__(**kwargs)
        self.default_ttl = 0
        self.set_default_ttl(default_ttl)

    def set_default_ttl(self, ttl: TTL):
        """Change the default TTL (chainable). Invalid values are recorded."""
        try:
            seconds = coerce_ttl(ttl)
        except (TypeError, ValueError) as e:
            self._record(e)
            return self
        self.default_ttl = seconds or 0
        return self
