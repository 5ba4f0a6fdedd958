import pytest

from dalink.fees import (
    BYTES_PER_BLOB_INFO,
    DEFAULT_TX_SIZE_COST_PER_BYTE,
    PFB_GAS_FIXED_COST,
    calculate_fees,
    default_estimate_gas,
    estimate_gas,
    gas_to_consume,
)

GAS_ADJUST = 2


@pytest.mark.parametrize(
    "blob_size, measured_gas, gas_adjust",
    [
        (3576, 106230, 0),
        (6282, 120850, 0),
        (12074, 170002, GAS_ADJUST),
        (16908, 323804, GAS_ADJUST),
        (31343, 333852, 0),
        (43248, 432156, 0),
        (506524, 6688820, GAS_ADJUST),
        (1499572, 19598440, GAS_ADJUST),
    ],
)
def test_estimate_covers_measured_gas(blob_size, measured_gas, gas_adjust):
    expected = default_estimate_gas(blob_size)
    if gas_adjust:
        expected = int(float(expected) * gas_adjust)
    assert expected >= measured_gas


def test_empty_blob_only_overhead():
    assert default_estimate_gas(0) == PFB_GAS_FIXED_COST + DEFAULT_TX_SIZE_COST_PER_BYTE * BYTES_PER_BLOB_INFO


def test_gas_to_consume_additive():
    assert gas_to_consume([100, 5000], 8) == gas_to_consume([100], 8) + gas_to_consume([5000], 8)
    assert gas_to_consume([], 8) == 0


def test_estimate_gas_no_blobs():
    assert estimate_gas([], 8, 10) == PFB_GAS_FIXED_COST


def test_calculate_fees_fixed_fee_wins():
    assert calculate_fees(200000000, 0.1, 5) == 200000000


def test_calculate_fees_rounds_up():
    assert calculate_fees(0, 0.1, 15) == 2
    assert calculate_fees(0, 0.1, 20000000) == 2000000


def test_negative_blob_size_rejected():
    with pytest.raises(ValueError):
        default_estimate_gas(-1)