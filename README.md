# dalink

`dalink` gives a rollup node a common way to talk to a data availability (DA)
layer. The node hands a batch to a DA client and gets back the DA height the
batch was included at. Later it can ask whether data exists at a height, and it
can fetch the batches stored there.

## What is inside

- `dalink.da`: the shared pieces.
  - The abstract `DataAvailabilityLayerClient` and `BatchRetriever` interfaces, and the `Logger` protocol (`debug`, `info`, `error`, each taking a message and alternating keys and values).
  - The result types `ResultSubmitBatch`, `ResultCheckBatch` and `ResultRetrieveBatch`, with the `StatusCode` and `ClientType` enums.
  - The broadcast errors `TxBroadcastError`, `TxBroadcastConfigError`, `TxBroadcastNetworkError` and `TxBroadcastTimeoutError`.
  - DA health events: `EventDataDAHealthStatus`, `query_for_event`, `EVENT_QUERY_DA_HEALTH_STATUS` and `submit_batch_health_event`. The last returns `None` once the event is published, or an error `ResultSubmitBatch` when publishing fails.
- `dalink.pubsub`: a small in-process publish/subscribe server.
  - `Server` delivers messages tagged with key/value events to matching subscriptions.
  - Queries such as `da.event='DAHealthStatus' AND height>5` are built with `parse_query`. They support `=`, `<`, `<=`, `>`, `>=`, `CONTAINS` and `EXISTS`.
  - `Subscription.get(timeout)` raises `TimeoutError` when no message arrives in time. It raises `SubscriptionCancelledError` once the subscription has been cancelled and emptied.
  - Each subscription has a bounded queue, one message by default. A subscriber that falls behind is cancelled with `OutOfCapacityError`.
- `dalink.celestia_types`: Celestia share-layout constants and `sparse_shares_needed`.
- `dalink.fees`: gas estimation for pay-for-blob transactions.
  - `gas_to_consume`, `estimate_gas` and `default_estimate_gas`.
  - `calculate_fees`, which returns the fixed fee when one is set, or else gas price times gas rounded up.
- `dalink.celestia_config`: the Celestia client configuration.
  - `Config`, `Namespace`, `load_config` and `default_config`.
  - Namespace IDs are read from hex and left-padded with zeros to 28 bytes.
  - In JSON the `timeout` is in nanoseconds; on `Config` it is in seconds.
- `dalink.celestia`: `CelestiaClient`, the Celestia DA client, with `BatchCodec`, `TxResponse` and `TxResult`.

## Installing

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Estimating gas

```python
from dalink.fees import default_estimate_gas, calculate_fees

gas = default_estimate_gas(3576)          # gas for one blob of 3576 bytes
wanted = int(gas * 1.3)                   # apply the gas adjustment
fee = calculate_fees(0, 0.1, wanted)      # no fixed fee, so gas price * gas, rounded up
```

## Listening for DA health

```python
from dalink.pubsub import Server
from dalink.da import query_for_event, submit_batch_health_event

server = Server()
server.start()
sub = server.subscribe("watcher", query_for_event("DAHealthStatus"))

submit_batch_health_event(server, True, None)
message = sub.get(timeout=1.0)
print(message.data.healthy)   # True
```

## Configuring the Celestia client

```python
from dalink.celestia_config import default_config, load_config

cfg = default_config()
raw = cfg.to_json()
same = load_config(raw)
same.init_namespace_id()
print(same.namespace_id.to_bytes().hex())
```

`CelestiaClient.init` checks the configuration:

- Set exactly one of `fee` and `gas_prices`. Init raises `ValueError` when both are set or neither is.
- A `gas_adjustment` of zero is replaced by 1.3.

## Using the Celestia client

`CelestiaClient` does not open network connections itself. You give it two objects:

- A node client with these methods:
  - `submit_pfb(namespace, blob, fee, gas_limit)`, returning a `TxResponse` or `None`.
  - `namespaced_shares(namespace, height)`.
  - `namespaced_data(namespace, height)`.
- An RPC client with `tx(tx_hash, prove)`, returning a `TxResult` or `None`.

Init raises `ValueError` if either one is missing. Batches are turned into blobs by a `BatchCodec`. The default codec writes compact, key-sorted JSON.

```python
from dalink.celestia import CelestiaClient, TxResponse
from dalink.celestia_config import default_config
from dalink.pubsub import Server


class Node:
    def __init__(self):
        self.blobs = {}

    def submit_pfb(self, namespace, blob, fee, gas_limit):
        self.blobs.setdefault(7, []).append(blob)
        return TxResponse(code=0, height=7, tx_hash="ab")

    def namespaced_shares(self, namespace, height):
        return self.blobs.get(height, [])

    def namespaced_data(self, namespace, height):
        return self.blobs.get(height, [])


class Rpc:
    def tx(self, tx_hash, prove):
        return None


class PrintLogger:
    def debug(self, msg, *keyvals): print("DEBUG", msg, *keyvals)
    def info(self, msg, *keyvals): print("INFO", msg, *keyvals)
    def error(self, msg, *keyvals): print("ERROR", msg, *keyvals)


server = Server(buffer_capacity=0)
server.start()
client = CelestiaClient(cnc_client=Node(), rpc_client=Rpc())
client.init(default_config().to_json().encode(), server, None, PrintLogger())
client.start()

result = client.submit_batch({"start_height": 1, "end_height": 1})
print(result.code, result.da_height)                       # StatusCode.SUCCESS 7
print(client.check_batch_availability(7).data_available)   # True
print(client.retrieve_batches(7).batches)                  # [{'end_height': 1, 'start_height': 1}]
client.stop()
```

How `submit_batch` behaves:

- It retries until the batch is included or the client is stopped.
- A failed submission publishes an unhealthy event and waits `submit_retry_delay` seconds before the next try. The default is 10 seconds.
- A response with height 0 means inclusion is still pending. The client then polls the RPC client for the transaction, up to `tx_polling_attempts` times (5 by default; zero or less means no limit), `tx_polling_retry_delay` seconds apart (20 by default).
- Success publishes a healthy event.
- If a health event cannot be published, for example because the server was stopped, `submit_batch` returns an error result.
- After `stop()` it returns an empty `ResultSubmitBatch` whose code is `StatusCode.UNKNOWN`.
- The retry delays and the polling attempts can be passed to the constructor.

`stop()` also stops the pubsub server given to `init`.

`retrieve_batches` logs blobs it cannot decode and leaves them out of the result.

## What this package does not do

- There is no command-line program and no server process.
- It has no client that speaks to a real Celestia node or consensus node over the network; you supply those objects.
- `CelestiaClient` is the only `DataAvailabilityLayerClient` in the package. No mock, gRPC or other DA clients are included, and there is no registry of clients by name.
- Batches are not persisted; the `kv_store` argument to `init` is accepted but not used.

## Running the tests

```
pytest
```