"""Common types for data availability layer clients."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass, field
from typing import Any, Protocol

from dalink.pubsub import PubsubError, Query, Server, parse_query


class StatusCode(enum.IntEnum):
    """Outcome of a data availability layer call."""

    UNKNOWN = 0
    SUCCESS = 1
    TIMEOUT = 2
    ERROR = 3


class ClientType(str, enum.Enum):
    """Kinds of data availability layer clients."""

    MOCK = "mock"
    CELESTIA = "celestia"
    AVAIL = "avail"


@dataclass
class BaseResult:
    """Basic information returned by a data availability layer."""

    code: StatusCode = StatusCode.UNKNOWN
    message: str = ""
    da_height: int = 0


@dataclass
class ResultSubmitBatch(BaseResult):
    """Result of submitting a batch."""


@dataclass
class ResultCheckBatch(BaseResult):
    """Result of checking whether a batch is available."""

    data_available: bool = False


@dataclass
class ResultRetrieveBatch(BaseResult):
    """Batches retrieved from a data availability layer height."""

    batches: list[Any] = field(default_factory=list)


class Logger(Protocol):
    """Structured logger taking a message and alternating keys and values."""

    def debug(self, msg: str, *keyvals: Any) -> None: ...

    def info(self, msg: str, *keyvals: Any) -> None: ...

    def error(self, msg: str, *keyvals: Any) -> None: ...


class DataAvailabilityLayerClient(abc.ABC):
    """Generic interface for submitting batches to a data availability layer."""

    @abc.abstractmethod
    def init(self, config: bytes, pubsub_server: Server, kv_store: Any, logger: Logger) -> None:
        """Read configuration and prepare resources; called once."""

    @abc.abstractmethod
    def start(self) -> None:
        """Begin operation; called once after init."""

    @abc.abstractmethod
    def stop(self) -> None:
        """Release resources; called once when the client is no longer needed."""

    @abc.abstractmethod
    def submit_batch(self, batch: Any) -> ResultSubmitBatch:
        """Submit a batch to the data availability layer."""

    @abc.abstractmethod
    def check_batch_availability(self, data_layer_height: int) -> ResultCheckBatch:
        """Check whether data is available at the given height."""

    @abc.abstractmethod
    def client_type(self) -> ClientType:
        """Return the kind of this client."""


class BatchRetriever(abc.ABC):
    """A client able to read batches back from the data availability layer."""

    @abc.abstractmethod
    def retrieve_batches(self, data_layer_height: int) -> ResultRetrieveBatch:
        """Return the batches stored at the given height."""


class TxBroadcastError(Exception):
    """Base class for transaction broadcast failures."""

    default_message = "tx broadcast failed"

    def __init__(self, detail: str = "") -> None:
        message = f"{self.default_message}: {detail}" if detail else self.default_message
        super().__init__(message)


class TxBroadcastConfigError(TxBroadcastError):
    """The transaction could not be built."""

    default_message = "Failed building tx"


class TxBroadcastNetworkError(TxBroadcastError):
    """The transaction could not be broadcast."""

    default_message = "Failed broadcasting tx"


class TxBroadcastTimeoutError(TxBroadcastError):
    """The broadcast timed out."""

    default_message = "Broadcast timeout error"


EVENT_TYPE_KEY = "da.event"
EVENT_DA_HEALTH_STATUS = "DAHealthStatus"


@dataclass
class EventDataDAHealthStatus:
    """Health status of the data availability layer."""

    healthy: bool
    error: BaseException | None = None


def query_for_event(event_type: str) -> Query:
    """Return a query matching events of the given type."""
    return parse_query(f"{EVENT_TYPE_KEY}='{event_type}'")


EVENT_QUERY_DA_HEALTH_STATUS = query_for_event(EVENT_DA_HEALTH_STATUS)


def submit_batch_health_event(
    pubsub_server: Server, healthy: bool, error: BaseException | None
) -> ResultSubmitBatch | None:
    """Publish a health event.

    Returns None when the event was published, otherwise an error result
    describing why publishing failed.
    """
    try:
        pubsub_server.publish_with_events(
            EventDataDAHealthStatus(healthy=healthy, error=error),
            {EVENT_TYPE_KEY: [EVENT_DA_HEALTH_STATUS]},
        )
    except PubsubError as exc:
        return ResultSubmitBatch(code=StatusCode.ERROR, message=str(exc))
    return None