"""
Cooperative cancellation for worker threads.

A FetchContext carries a cancellation flag and an optional monotonic deadline.
Child contexts are cancelled together with their parent, never the other way
round, so a batch can clean up its own in-flight work without touching
sibling batches.
"""

import threading
import time
from typing import List, Optional


class FetchContext:
    """Cancellation scope shared by the tasks of one run or one batch"""

    def __init__(self, timeout: Optional[float] = None, parent: Optional["FetchContext"] = None):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._children: List["FetchContext"] = []
        self.parent = parent
        self.reason: Optional[str] = None

        deadline = time.monotonic() + timeout if timeout is not None else None
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)
        self.deadline: Optional[float] = deadline

        if parent is not None:
            parent._register_child(self)

    def _register_child(self, child: "FetchContext") -> None:
        with self._lock:
            self._children.append(child)
            cancelled = self._event.is_set()
        if cancelled:
            child.cancel(self.reason)

    def _unregister_child(self, child: "FetchContext") -> None:
        with self._lock:
            if child in self._children:
                self._children.remove(child)

    @property
    def active_children(self) -> int:
        """Derived contexts that have not been cancelled yet"""
        with self._lock:
            return len(self._children)

    def child(self, timeout: Optional[float] = None) -> "FetchContext":
        """Derive a sub-context that is cancelled when this one is"""
        return FetchContext(timeout=timeout, parent=self)

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel this context and every context derived from it"""
        with self._lock:
            if self._event.is_set():
                return
            self.reason = reason or "context cancelled"
            self._event.set()
            children = list(self._children)
            self._children.clear()
        for child in children:
            child.cancel(self.reason)
        # Cancelled contexts are no longer tracked by their parent
        if self.parent is not None:
            self.parent._unregister_child(self)

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline, None without a deadline"""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - time.monotonic())

    @property
    def deadline_exceeded(self) -> bool:
        return self.deadline is not None and time.monotonic() >= self.deadline

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self.deadline_exceeded:
            self.cancel("deadline exceeded")
            return True
        return False

    def wait(self, timeout: Optional[float] = None) -> bool:
        """
        Block for up to `timeout` seconds or until cancellation.

        Returns:
            True if the context is cancelled when the wait ends
        """
        remaining = self.remaining()
        if remaining is not None:
            timeout = remaining if timeout is None else min(timeout, remaining)
        self._event.wait(timeout)
        return self.cancelled

    def __repr__(self) -> str:
        return f"FetchContext(cancelled={self._event.is_set()}, remaining={self.remaining()})"


def background() -> FetchContext:
    """A context that is never cancelled unless cancel() is called explicitly"""
    return FetchContext()
