"""Data availability client that submits batches to a Celestia node."""

from __future__ import annotations

import binascii
import itertools
import json
import threading
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from dalink.celestia_config import (
    DEFAULT_GAS_ADJUSTMENT,
    DEFAULT_SUBMIT_RETRY_DELAY,
    DEFAULT_TX_POLLING_ATTEMPTS,
    DEFAULT_TX_POLLING_RETRY_DELAY,
    Config,
    Namespace,
    load_config,
)
from dalink.da import (
    BatchRetriever,
    ClientType,
    DataAvailabilityLayerClient,
    Logger,
    ResultCheckBatch,
    ResultRetrieveBatch,
    ResultSubmitBatch,
    StatusCode,
    submit_batch_health_event,
)
from dalink.fees import calculate_fees, default_estimate_gas
from dalink.pubsub import Server


class BatchCodec:
    """Encodes batches as compact, key-sorted JSON documents."""

    def encode(self, batch: Any) -> bytes:
        return json.dumps(batch, sort_keys=True, separators=(",", ":")).encode()

    def decode(self, data: bytes) -> Any:
        return json.loads(data)


@dataclass
class TxResponse:
    """Response of a pay-for-blob submission; ``height`` 0 means not yet included."""

    code: int = 0
    height: int = 0
    tx_hash: str = ""
    raw_log: str = ""
    gas_wanted: int = 0
    gas_used: int = 0


@dataclass
class TxResult:
    """A transaction as reported by a consensus node."""

    hash: bytes = b""
    height: int = 0


class _CNCClient(Protocol):
    def submit_pfb(
        self, namespace: Namespace, blob: bytes, fee: int, gas_limit: int
    ) -> TxResponse | None: ...

    def namespaced_shares(self, namespace: Namespace, height: int) -> Sequence[bytes]: ...

    def namespaced_data(self, namespace: Namespace, height: int) -> Sequence[bytes]: ...


class _RPCClient(Protocol):
    def tx(self, tx_hash: bytes, prove: bool) -> TxResult | None: ...


class _SubmitFailed(Exception):
    def __init__(self, message: str, cause: BaseException | None, *keyvals: Any) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.keyvals = keyvals


class CelestiaClient(DataAvailabilityLayerClient, BatchRetriever):
    """Submits batches as blobs and reads them back by namespace."""

    def __init__(
        self,
        cnc_client: _CNCClient | None = None,
        rpc_client: _RPCClient | None = None,
        codec: BatchCodec | None = None,
        tx_polling_retry_delay: float | None = None,
        tx_polling_attempts: int | None = None,
        submit_retry_delay: float | None = None,
    ) -> None:
        self._cnc = cnc_client
        self._rpc = rpc_client
        self._codec = codec or BatchCodec()
        self._polling_delay_override = tx_polling_retry_delay
        self._polling_attempts_override = tx_polling_attempts
        self._submit_delay_override = submit_retry_delay
        self.config = Config()
        self._pubsub: Server | None = None
        self._logger: Logger | None = None
        self.tx_polling_retry_delay = DEFAULT_TX_POLLING_RETRY_DELAY
        self.tx_polling_attempts = DEFAULT_TX_POLLING_ATTEMPTS
        self.submit_retry_delay = DEFAULT_SUBMIT_RETRY_DELAY
        self._stopped = threading.Event()

    def init(self, config: bytes, pubsub_server: Server, kv_store: Any, logger: Logger) -> None:
        """Parse and validate the configuration and prepare the client."""
        self._logger = logger
        if not config:
            raise ValueError("config is empty")
        cfg = load_config(config)
        cfg.init_namespace_id()
        if cfg.gas_prices != 0 and cfg.fee != 0:
            raise ValueError("can't set both gas prices and fee")
        if cfg.fee == 0 and cfg.gas_prices == 0:
            raise ValueError("fee or gas prices must be set")
        if cfg.gas_adjustment == 0:
            cfg.gas_adjustment = DEFAULT_GAS_ADJUSTMENT
        if self._cnc is None:
            raise ValueError("no celestia node client configured")
        if self._rpc is None:
            raise ValueError("no consensus node rpc client configured")
        self.config = cfg
        self._pubsub = pubsub_server
        self.tx_polling_retry_delay = (
            DEFAULT_TX_POLLING_RETRY_DELAY
            if self._polling_delay_override is None
            else self._polling_delay_override
        )
        self.tx_polling_attempts = (
            DEFAULT_TX_POLLING_ATTEMPTS
            if self._polling_attempts_override is None
            else self._polling_attempts_override
        )
        self.submit_retry_delay = (
            DEFAULT_SUBMIT_RETRY_DELAY
            if self._submit_delay_override is None
            else self._submit_delay_override
        )
        self._stopped = threading.Event()

    def start(self) -> None:
        self._logger.info("starting Celestia Data Availability Layer Client")

    def stop(self) -> None:
        """Stop the pubsub server and cancel any submission in progress."""
        self._logger.info("stopping Celestia Data Availability Layer Client")
        self._pubsub.stop()
        self._stopped.set()

    def client_type(self) -> ClientType:
        return ClientType.CELESTIA

    def submit_batch(self, batch: Any) -> ResultSubmitBatch:
        """Submit a batch, retrying until it is included or the client stops."""
        try:
            blob = self._codec.encode(batch)
        except (TypeError, ValueError) as exc:
            return ResultSubmitBatch(code=StatusCode.ERROR, message=str(exc))
        estimated_gas = default_estimate_gas(len(blob))
        gas_wanted = int(estimated_gas * self.config.gas_adjustment)
        fees = calculate_fees(self.config.fee, self.config.gas_prices, gas_wanted)
        self._logger.debug(
            "Submitting to da blob with size", "size", len(blob),
            "estimatedGas", estimated_gas, "gasAdjusted", gas_wanted, "fees", fees,
        )

        while not self._stopped.is_set():
            try:
                response, da_height = self._submit_once(blob, fees, gas_wanted)
            except _SubmitFailed as failure:
                self._logger.error(failure.message, *failure.keyvals)
                res = submit_batch_health_event(self._pubsub, False, failure.cause)
                if res is not None:
                    return res
                self._stopped.wait(self.submit_retry_delay)
                continue

            self._logger.info(
                "Successfully submitted DA batch", "txHash", response.tx_hash,
                "daHeight", response.height, "gasWanted", response.gas_wanted,
                "gasUsed", response.gas_used,
            )
            res = submit_batch_health_event(self._pubsub, True, None)
            if res is not None:
                return res
            return ResultSubmitBatch(
                code=StatusCode.SUCCESS,
                message="tx hash: " + response.tx_hash,
                da_height=da_height,
            )

        self._logger.debug("Context cancelled")
        return ResultSubmitBatch()

    def _submit_once(self, blob: bytes, fees: int, gas_wanted: int) -> tuple[TxResponse, int]:
        retry_msg = "Failed to submit DA batch. Emitting health event and trying again"
        try:
            response = self._cnc.submit_pfb(self.config.namespace_id, blob, fees, gas_wanted)
        except Exception as exc:
            raise _SubmitFailed(retry_msg, exc, "error", exc) from exc
        if response is None:
            raise _SubmitFailed(retry_msg, None, "error", None)
        if response.code != 0:
            raise _SubmitFailed(
                retry_msg, RuntimeError(response.raw_log),
                "txResponse", response.raw_log, "code", response.code,
            )
        da_height = response.height
        if da_height == 0:
            self._logger.debug(
                "Failed to receive DA batch inclusion result. Waiting for inclusion",
                "txHash", response.tx_hash,
            )
            try:
                da_height = self._wait_for_tx_inclusion(response.tx_hash)
            except Exception as exc:
                raise _SubmitFailed(
                    "Failed to receive DA batch inclusion result. "
                    "Emitting health event and trying again",
                    exc, "error", exc,
                ) from exc
        return response, da_height

    def _wait_for_tx_inclusion(self, tx_hash: str) -> int:
        hash_bytes = binascii.unhexlify(tx_hash)
        attempts = (
            itertools.count()
            if self.tx_polling_attempts <= 0
            else range(self.tx_polling_attempts)
        )
        last_error: Exception = LookupError("transaction not found")
        for attempt in attempts:
            if attempt and self._stopped.wait(self.tx_polling_retry_delay):
                break
            try:
                result = self._rpc.tx(hash_bytes, False)
            except Exception as exc:
                last_error = exc
                continue
            if result is None:
                self._logger.error("couldn't get transaction from node", "err", None)
                last_error = LookupError("transaction not found")
                continue
            return result.height
        raise last_error

    def check_batch_availability(self, data_layer_height: int) -> ResultCheckBatch:
        try:
            shares = self._cnc.namespaced_shares(self.config.namespace_id, data_layer_height)
        except Exception as exc:
            return ResultCheckBatch(code=StatusCode.ERROR, message=str(exc))
        return ResultCheckBatch(
            code=StatusCode.SUCCESS,
            da_height=data_layer_height,
            data_available=len(shares) > 0,
        )

    def retrieve_batches(self, data_layer_height: int) -> ResultRetrieveBatch:
        """Return the batches at a height; undecodable blobs are logged and skipped."""
        try:
            blobs = self._cnc.namespaced_data(self.config.namespace_id, data_layer_height)
        except Exception as exc:
            return ResultRetrieveBatch(code=StatusCode.ERROR, message=str(exc))
        batches = []
        for position, blob in enumerate(blobs):
            try:
                batches.append(self._codec.decode(blob))
            except ValueError as exc:
                self._logger.error(
                    "failed to unmarshal batch", "daHeight", data_layer_height,
                    "position", position, "error", exc,
                )
        return ResultRetrieveBatch(
            code=StatusCode.SUCCESS, da_height=data_layer_height, batches=batches
        )