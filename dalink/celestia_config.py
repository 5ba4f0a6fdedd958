"""Configuration of the Celestia data availability client."""

from __future__ import annotations

import binascii
import json
from dataclasses import dataclass, field
from typing import Any

from dalink.celestia_types import NAMESPACE_ID_SIZE, NAMESPACE_VERSION_MAX_VALUE

DEFAULT_TX_POLLING_RETRY_DELAY = 20.0
DEFAULT_SUBMIT_RETRY_DELAY = 10.0
DEFAULT_TX_POLLING_ATTEMPTS = 5
NAMESPACE_VERSION = 0
DEFAULT_GAS_PRICES = 0.1
DEFAULT_GAS_ADJUSTMENT = 1.3

_NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True)
class Namespace:
    """A namespace: one version byte followed by an identifier."""

    version: int = 0
    id: bytes = b""

    def to_bytes(self) -> bytes:
        return bytes([self.version]) + self.id


def _new_namespace(version: int, namespace_id: bytes) -> Namespace:
    if not 0 <= version <= NAMESPACE_VERSION_MAX_VALUE:
        raise ValueError(f"invalid namespace version {version}")
    if len(namespace_id) != NAMESPACE_ID_SIZE:
        raise ValueError(
            f"namespace id must be {NAMESPACE_ID_SIZE} bytes, got {len(namespace_id)}"
        )
    return Namespace(version, bytes(namespace_id))


@dataclass
class Config:
    """Celestia client settings; ``timeout`` is in seconds."""

    base_url: str = ""
    app_node_url: str = ""
    timeout: float = 0.0
    fee: int = 0
    gas_prices: float = 0.0
    gas_adjustment: float = 0.0
    gas_limit: int = 0
    namespace_id_str: str = ""
    namespace_id: Namespace = field(default_factory=Namespace)

    def init_namespace_id(self) -> None:
        """Decode ``namespace_id_str``, left-padding it with zeros to full size."""
        raw = binascii.unhexlify(self.namespace_id_str)
        if len(raw) > NAMESPACE_ID_SIZE:
            raise ValueError(
                f"namespace id must be at most {NAMESPACE_ID_SIZE} bytes, got {len(raw)}"
            )
        self.namespace_id = _new_namespace(NAMESPACE_VERSION, raw.rjust(NAMESPACE_ID_SIZE, b"\x00"))

    def to_json(self) -> str:
        """Serialise to JSON; the timeout is written in nanoseconds."""
        return json.dumps(
            {
                "base_url": self.base_url,
                "app_node_url": self.app_node_url,
                "timeout": round(self.timeout * _NANOS_PER_SECOND),
                "fee": self.fee,
                "gas_prices": self.gas_prices,
                "gas_adjustment": self.gas_adjustment,
                "gas_limit": self.gas_limit,
                "namespace_id": self.namespace_id_str,
            }
        )


def _field(obj: dict[str, Any], key: str, kind: type, default: Any) -> Any:
    if key not in obj or obj[key] is None:
        return default
    value = obj[key]
    if isinstance(value, bool):
        raise ValueError(f"{key}: expected {kind.__name__}, got bool")
    if kind is float and isinstance(value, int):
        return float(value)
    if not isinstance(value, kind):
        raise ValueError(f"{key}: expected {kind.__name__}, got {type(value).__name__}")
    return value


def load_config(data: bytes | str) -> Config:
    """Parse a JSON configuration; missing fields keep their zero values."""
    obj = json.loads(data)
    if not isinstance(obj, dict):
        raise ValueError("configuration must be a JSON object")
    gas_limit = _field(obj, "gas_limit", int, 0)
    if gas_limit < 0:
        raise ValueError("gas_limit must not be negative")
    return Config(
        base_url=_field(obj, "base_url", str, ""),
        app_node_url=_field(obj, "app_node_url", str, ""),
        timeout=_field(obj, "timeout", int, 0) / _NANOS_PER_SECOND,
        fee=_field(obj, "fee", int, 0),
        gas_prices=_field(obj, "gas_prices", float, 0.0),
        gas_adjustment=_field(obj, "gas_adjustment", float, 0.0),
        gas_limit=gas_limit,
        namespace_id_str=_field(obj, "namespace_id", str, ""),
    )


def default_config() -> Config:
    """Return the default Celestia client configuration."""
    return Config(
        base_url="http://127.0.0.1:26659",
        app_node_url="",
        timeout=30.0,
        fee=0,
        gas_limit=20000000,
        gas_prices=DEFAULT_GAS_PRICES,
        gas_adjustment=DEFAULT_GAS_ADJUSTMENT,
        namespace_id_str="000000000000ffff",
        namespace_id=Namespace(NAMESPACE_VERSION, bytes([0, 0, 0, 0, 0, 0, 255, 255])),
    )