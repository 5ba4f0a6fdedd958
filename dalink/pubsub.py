"""In-process publish/subscribe server with event queries."""

from __future__ import annotations

import re
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping


class PubsubError(Exception):
    """Base class for publish/subscribe errors."""


class QuerySyntaxError(PubsubError, ValueError):
    """Raised when a query string cannot be parsed."""


class ServerNotRunningError(PubsubError):
    """Raised when the server is used while it is not running."""


class AlreadySubscribedError(PubsubError):
    """Raised when a client subscribes twice with the same query."""


class SubscriptionNotFoundError(PubsubError):
    """Raised when a client has no subscriptions to remove."""


class OutOfCapacityError(PubsubError):
    """Reason given when a subscriber fails to keep up with messages."""


class SubscriptionCancelledError(PubsubError):
    """Raised by Subscription.get once the subscription is cancelled and drained."""


_CONDITION = re.compile(
    r"\s*(?P<key>[^\s=<>']+)\s*"
    r"(?:(?P<exists>EXISTS)"
    r"|(?P<op><=|>=|=|<|>|CONTAINS)\s*(?P<val>'[^']*'|-?\d+(?:\.\d+)?))\s*"
)
_AND = re.compile(r"AND\b")


def _as_number(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


@dataclass(frozen=True)
class _Condition:
    key: str
    op: str
    operand: str | float | None

    def holds(self, value: str) -> bool:
        if self.op == "EXISTS":
            return True
        if isinstance(self.operand, str):
            if self.op == "=":
                return value == self.operand
            if self.op == "CONTAINS":
                return self.operand in value
            return False
        number = _as_number(value)
        if number is None or self.operand is None:
            return False
        comparisons: dict[str, Callable[[float, float], bool]] = {
            "=": lambda a, b: a == b,
            "<": lambda a, b: a < b,
            "<=": lambda a, b: a <= b,
            ">": lambda a, b: a > b,
            ">=": lambda a, b: a >= b,
        }
        compare = comparisons.get(self.op)
        return compare is not None and compare(number, self.operand)


@dataclass(frozen=True)
class Query:
    """A conjunction of conditions over event attributes."""

    text: str
    conditions: tuple[_Condition, ...]

    def matches(self, events: Mapping[str, Iterable[str]]) -> bool:
        """Return True when every condition holds for some value of its key."""
        for condition in self.conditions:
            values = events.get(condition.key)
            if not values or not any(condition.holds(v) for v in values):
                return False
        return True

    def __str__(self) -> str:
        return self.text


def parse_query(text: str) -> Query:
    """Parse a query such as ``da.event='DAHealthStatus' AND height>5``."""
    conditions: list[_Condition] = []
    pos = 0
    while True:
        match = _CONDITION.match(text, pos)
        if match is None:
            raise QuerySyntaxError(f"invalid query at position {pos}: {text!r}")
        if match.group("exists"):
            conditions.append(_Condition(match.group("key"), "EXISTS", None))
        else:
            raw = match.group("val")
            operand: str | float = raw[1:-1] if raw.startswith("'") else float(raw)
            conditions.append(_Condition(match.group("key"), match.group("op"), operand))
        pos = match.end()
        if pos == len(text):
            break
        joiner = _AND.match(text, pos)
        if joiner is None:
            raise QuerySyntaxError(f"expected AND at position {pos}: {text!r}")
        pos = joiner.end()
    return Query(text, tuple(conditions))


@dataclass(frozen=True)
class Message:
    """A published message together with the events it was tagged with."""

    data: Any
    events: Mapping[str, tuple[str, ...]] = field(default_factory=dict)


class Subscription:
    """A stream of messages matching a query for one client."""

    def __init__(self, client_id: str, query: Query, capacity: int) -> None:
        self.client_id = client_id
        self.query = query
        self.capacity = capacity
        self.err: Exception | None = None
        self._items: deque[Message] = deque()
        self._cancelled = False
        self._cond = threading.Condition()

    @property
    def cancelled(self) -> bool:
        with self._cond:
            return self._cancelled

    def get(self, timeout: float | None = None) -> Message:
        """Wait for the next message.

        Raises TimeoutError when none arrives in time and
        SubscriptionCancelledError once the subscription is cancelled and empty.
        """
        with self._cond:
            self._cond.wait_for(lambda: self._items or self._cancelled, timeout)
            if self._items:
                return self._items.popleft()
            if self._cancelled:
                raise SubscriptionCancelledError(str(self.err) if self.err else "cancelled")
            raise TimeoutError("no message received")

    def _offer(self, message: Message) -> bool:
        with self._cond:
            if self._cancelled:
                return True
            if self.capacity and len(self._items) >= self.capacity:
                return False
            self._items.append(message)
            self._cond.notify_all()
            return True

    def _cancel(self, reason: Exception | None) -> None:
        with self._cond:
            if not self._cancelled:
                self._cancelled = True
                self.err = reason
                self._cond.notify_all()


class Server:
    """Routes published messages to the subscriptions whose query matches.

    ``buffer_capacity`` bounds each subscription's queue; zero means unbounded.
    A subscriber whose queue is full is cancelled with OutOfCapacityError.
    """

    def __init__(self, buffer_capacity: int = 1) -> None:
        if buffer_capacity < 0:
            raise ValueError("buffer_capacity must not be negative")
        self.buffer_capacity = buffer_capacity
        self._lock = threading.Lock()
        self._state = "new"
        self._subs: dict[str, dict[str, Subscription]] = {}

    @property
    def running(self) -> bool:
        with self._lock:
            return self._state == "running"

    def start(self) -> None:
        with self._lock:
            if self._state != "new":
                raise PubsubError(f"server cannot be started from state {self._state}")
            self._state = "running"

    def stop(self) -> None:
        with self._lock:
            if self._state != "running":
                raise ServerNotRunningError("server is not running")
            self._state = "stopped"
            subs = [s for by_query in self._subs.values() for s in by_query.values()]
            self._subs.clear()
        for sub in subs:
            sub._cancel(ServerNotRunningError("server stopped"))

    def _ensure_running(self) -> None:
        if self._state != "running":
            raise ServerNotRunningError("server is not running")

    def subscribe(self, client_id: str, query: Query | str) -> Subscription:
        """Subscribe a client to messages matching the query."""
        if isinstance(query, str):
            query = parse_query(query)
        with self._lock:
            self._ensure_running()
            by_query = self._subs.setdefault(client_id, {})
            if query.text in by_query:
                raise AlreadySubscribedError(f"{client_id} already subscribed to {query}")
            sub = Subscription(client_id, query, self.buffer_capacity)
            by_query[query.text] = sub
            return sub

    def unsubscribe_all(self, client_id: str) -> None:
        """Cancel every subscription held by a client."""
        with self._lock:
            self._ensure_running()
            by_query = self._subs.pop(client_id, None)
        if not by_query:
            raise SubscriptionNotFoundError(f"no subscriptions for {client_id}")
        for sub in by_query.values():
            sub._cancel(None)

    def publish_with_events(self, data: Any, events: Mapping[str, Iterable[str]]) -> None:
        """Deliver data to every subscription whose query matches the events."""
        frozen = {key: tuple(values) for key, values in events.items()}
        message = Message(data, frozen)
        overflowed: list[Subscription] = []
        with self._lock:
            self._ensure_running()
            for client_id, by_query in list(self._subs.items()):
                for text, sub in list(by_query.items()):
                    if not sub.query.matches(frozen):
                        continue
                    if not sub._offer(message):
                        overflowed.append(sub)
                        del by_query[text]
                if not by_query:
                    del self._subs[client_id]
        for sub in overflowed:
            sub._cancel(OutOfCapacityError("client is not pulling messages fast enough"))