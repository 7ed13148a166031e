"""Observable signals with removable listeners."""

from __future__ import annotations

from typing import Any, Callable, Iterator, Optional

NotifyFunc = Callable[["Listener", Any], None]


class Listener:
    """A single callback that can be attached to at most one signal at a time."""

    __slots__ = ("notify", "_signal")

    def __init__(self, notify: NotifyFunc):
        self.notify = notify
        self._signal: Optional[Signal] = None

    @property
    def signal(self) -> Optional["Signal"]:
        """The signal this listener is attached to, if any."""
        return self._signal

    def remove(self) -> None:
        """Detach this listener from its signal."""
        if self._signal is None:
            raise ValueError("listener is not attached to a signal")
        self._signal._listeners.remove(self)
        self._signal = None

    def __repr__(self) -> str:
        return f"Listener({self.notify!r})"


class Signal:
    """A source of events that notifies its listeners in the order they were added."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []

    def add(self, listener: Listener) -> None:
        """Attach ``listener`` at the end of the listener list."""
        if listener._signal is not None:
            raise ValueError("listener is already attached to a signal")
        self._listeners.append(listener)
        listener._signal = self

    def get(self, notify: NotifyFunc) -> Optional[Listener]:
        """Return the first listener whose callback is ``notify``, or None."""
        return next((l for l in self._listeners if l.notify == notify), None)

    def emit(self, data: Any = None) -> None:
        """Call every listener with itself and ``data``.

        A listener may remove itself or others while being notified; removed
        listeners that have not yet been reached are not called.
        """
        for listener in tuple(self._listeners):
            if listener._signal is self:
                listener.notify(listener, data)

    def __iter__(self) -> Iterator[Listener]:
        return iter(tuple(self._listeners))

    def __len__(self) -> int:
        return len(self._listeners)

    def __contains__(self, listener: object) -> bool:
        return any(l is listener for l in self._listeners)