import binascii
import json

import pytest

from dalink.celestia_config import Config, Namespace, default_config, load_config
from dalink.celestia_types import NAMESPACE_ID_SIZE


def test_default_values():
    cfg = default_config()
    assert cfg.base_url == "http://127.0.0.1:26659"
    assert cfg.gas_limit == 20000000
    assert cfg.gas_prices == 0.1
    assert cfg.gas_adjustment == 1.3
    assert cfg.namespace_id == Namespace(0, bytes([0, 0, 0, 0, 0, 0, 255, 255]))


def test_init_namespace_pads_to_full_size():
    cfg = default_config()
    cfg.init_namespace_id()
    assert len(cfg.namespace_id.id) == NAMESPACE_ID_SIZE
    assert cfg.namespace_id.id.endswith(bytes.fromhex("000000000000ffff"))
    assert cfg.namespace_id.id.lstrip(b"\x00") == b"\xff\xff"
    assert cfg.namespace_id.version == 0


def test_namespace_to_bytes():
    assert Namespace(0, b"\x01\x02").to_bytes() == b"\x00\x01\x02"


def test_init_namespace_invalid_hex():
    cfg = Config(namespace_id_str="zz")
    with pytest.raises(binascii.Error):
        cfg.init_namespace_id()


def test_init_namespace_too_long():
    cfg = Config(namespace_id_str="ab" * (NAMESPACE_ID_SIZE + 1))
    with pytest.raises(ValueError):
        cfg.init_namespace_id()


def test_json_round_trip():
    cfg = default_config()
    loaded = load_config(cfg.to_json())
    assert loaded.base_url == cfg.base_url
    assert loaded.timeout == cfg.timeout
    assert loaded.gas_prices == cfg.gas_prices
    assert loaded.gas_limit == cfg.gas_limit
    assert loaded.namespace_id_str == cfg.namespace_id_str


def test_json_uses_wire_names():
    encoded = json.loads(default_config().to_json())
    assert encoded["namespace_id"] == "000000000000ffff"
    assert encoded["timeout"] == 30_000_000_000
    assert "namespace_id_str" not in encoded


def test_missing_fields_are_zero():
    cfg = load_config(b'{"base_url": "http://localhost:26658", "fee": 200000000}')
    assert cfg.fee == 200000000
    assert cfg.gas_prices == 0.0
    assert cfg.namespace_id_str == ""


def test_unknown_fields_ignored():
    cfg = load_config('{"fee": 5, "extra": true}')
    assert cfg.fee == 5


@pytest.mark.parametrize(
    "text",
    ['{"fee": "high"}', '{"fee": 1.5}', '{"gas_limit": -1}', '{"base_url": true}', "[]", "{"],
)
def test_invalid_json_rejected(text):
    with pytest.raises(ValueError):
        load_config(text)