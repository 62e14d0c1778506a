import asyncio
import dataclasses
from typing import AsyncIterator, Callable, Generic, List, Set, TypeVar

S = TypeVar("S")


class StateHolder(Generic[S]):
    """One observable value.

    Every write replaces the whole value; a write equal to the current
    value is ignored. Watchers see the latest value only, intermediate
    ones may be skipped.
    """

    def __init__(self, initial: S):
        self._value = initial
        self._callbacks: List[Callable[[S], None]] = []
        self._events: Set[asyncio.Event] = set()

    @property
    def value(self) -> S:
        return self._value

    def set(self, value: S) -> None:
        if value == self._value:
            return
        self._value = value
        for event in self._events:
            event.set()
        for callback in list(self._callbacks):
            callback(value)

    def update(self, **changes) -> None:
        # value must be a dataclass
        self.set(dataclasses.replace(self._value, **changes))

    def subscribe(self, callback: Callable[[S], None]) -> Callable[[], None]:
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    async def watch(self) -> AsyncIterator[S]:
        event = asyncio.Event()
        self._events.add(event)
        try:
            last = self._value
            yield last
            while True:
                await event.wait()
                event.clear()
                if self._value != last:
                    last = self._value
                    yield last
        finally:
            self._events.discard(event)
