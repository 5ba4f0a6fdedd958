import pytest

from dalink.da import (
    EVENT_DA_HEALTH_STATUS,
    EVENT_QUERY_DA_HEALTH_STATUS,
    EVENT_TYPE_KEY,
    ClientType,
    EventDataDAHealthStatus,
    ResultCheckBatch,
    ResultRetrieveBatch,
    StatusCode,
    TxBroadcastConfigError,
    TxBroadcastError,
    TxBroadcastNetworkError,
    TxBroadcastTimeoutError,
    query_for_event,
    submit_batch_health_event,
)
from dalink.pubsub import Server


def running_server():
    server = Server()
    server.start()
    return server


@pytest.mark.parametrize(
    "raw, expected",
    [
        (0, StatusCode.UNKNOWN),
        (1, StatusCode.SUCCESS),
        (2, StatusCode.TIMEOUT),
        (3, StatusCode.ERROR),
    ],
)
def test_status_code_from_value(raw, expected):
    assert StatusCode(raw) is expected


def test_status_code_rejects_unknown_value():
    with pytest.raises(ValueError):
        StatusCode(4)


def test_client_type_values():
    assert ClientType("celestia") is ClientType.CELESTIA
    assert ClientType.AVAIL.value == "avail"


def test_result_defaults():
    check = ResultCheckBatch()
    assert check.code is StatusCode.UNKNOWN
    assert check.data_available is False
    first, second = ResultRetrieveBatch(), ResultRetrieveBatch()
    first.batches.append("b")
    assert second.batches == []


def test_query_for_event_matches_type():
    q = query_for_event("Custom")
    assert q.matches({EVENT_TYPE_KEY: ["Custom"]})
    assert not q.matches({EVENT_TYPE_KEY: [EVENT_DA_HEALTH_STATUS]})
    assert EVENT_QUERY_DA_HEALTH_STATUS.matches({"da.event": ["DAHealthStatus"]})


def test_broadcast_error_messages():
    assert str(TxBroadcastConfigError()) == "Failed building tx"
    assert str(TxBroadcastNetworkError("boom")) == "Failed broadcasting tx: boom"
    assert str(TxBroadcastTimeoutError()) == "Broadcast timeout error"


@pytest.mark.parametrize(
    "error_class", [TxBroadcastConfigError, TxBroadcastNetworkError, TxBroadcastTimeoutError]
)
def test_broadcast_errors_share_base(error_class):
    err = error_class("detail")
    assert isinstance(err, TxBroadcastError)
    assert str(err).endswith(": detail")


def test_health_event_published():
    server = running_server()
    sub = server.subscribe("test", EVENT_QUERY_DA_HEALTH_STATUS)
    failure = RuntimeError("down")
    assert submit_batch_health_event(server, False, failure) is None
    event = sub.get(timeout=1).data
    assert event == EventDataDAHealthStatus(healthy=False, error=failure)


def test_health_event_healthy():
    server = running_server()
    sub = server.subscribe("test", EVENT_QUERY_DA_HEALTH_STATUS)
    submit_batch_health_event(server, True, None)
    assert sub.get(timeout=1).data.healthy is True


def test_health_event_on_stopped_server():
    server = running_server()
    server.stop()
    result = submit_batch_health_event(server, True, None)
    assert result.code is StatusCode.ERROR
    assert "not running" in result.message