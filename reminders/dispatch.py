"""Fire-and-forget dispatch of best-effort side effects (enrichment, audit)."""

import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Optional

logger = logging.getLogger("reminders.dispatch")


@dataclass
class SideEffectFailure:
    """A side effect that raised; kept for inspection by operators and tests."""

    name: str
    error: BaseException
    failed_at: datetime = field(default_factory=datetime.now)


class SideEffectDispatcher:
    """
    Runs side effects without letting their failures reach the caller.

    With no executor the effect runs inline, after the primary operation has
    already completed. With an executor it runs in the background. Either way
    a raised exception is logged and appended to ``failures``; listeners
    registered with ``on_failure`` are notified.
    """

    def __init__(self, executor: Optional[Executor] = None):
        self._executor = executor
        self._lock = threading.Lock()
        self._listeners: List[Callable[[SideEffectFailure], None]] = []
        self.failures: List[SideEffectFailure] = []

    def on_failure(self, listener: Callable[[SideEffectFailure], None]) -> None:
        self._listeners.append(listener)

    def submit(self, name: str, fn: Callable[..., Any], *args, **kwargs) -> Optional[Future]:
        """Run fn(*args, **kwargs) as a best-effort side effect."""
        if self._executor is None:
            self._run(name, fn, args, kwargs)
            return None
        return self._executor.submit(self._run, name, fn, args, kwargs)

    def _run(self, name, fn, args, kwargs) -> None:
        try:
            fn(*args, **kwargs)
        except Exception as e:
            logger.exception("Side effect %s failed", name)
            failure = SideEffectFailure(name=name, error=e)
            with self._lock:
                self.failures.append(failure)
            for listener in list(self._listeners):
                try:
                    listener(failure)
                except Exception:
                    logger.exception("Failure listener raised for %s", name)
