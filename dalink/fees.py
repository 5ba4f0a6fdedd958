"""Gas estimation and fee calculation for blob submissions."""

from __future__ import annotations

import math
from collections.abc import Iterable

from dalink.celestia_types import SHARE_SIZE, sparse_shares_needed

# Fixed gas overhead of a pay-for-blob transaction, fitted from observed data
# and rounded up to stay conservative.
PFB_GAS_FIXED_COST = 75000
# Rough number of extra transaction bytes each blob adds.
BYTES_PER_BLOB_INFO = 70
DEFAULT_GAS_PER_BLOB_BYTE = 8
DEFAULT_TX_SIZE_COST_PER_BYTE = 10


def gas_to_consume(blob_sizes: Iterable[int], gas_per_byte: int) -> int:
    """Gas charged for the shares the blobs occupy."""
    total_shares = sum(sparse_shares_needed(size) for size in blob_sizes)
    return total_shares * SHARE_SIZE * gas_per_byte


def estimate_gas(blob_sizes: Iterable[int], gas_per_byte: int, tx_size_cost: int) -> int:
    """Estimate total gas for a transaction paying for the given blobs."""
    sizes = list(blob_sizes)
    return (
        gas_to_consume(sizes, gas_per_byte)
        + tx_size_cost * BYTES_PER_BLOB_INFO * len(sizes)
        + PFB_GAS_FIXED_COST
    )


def default_estimate_gas(blob_size: int) -> int:
    """Estimate gas for a single blob using the default network parameters."""
    return estimate_gas([blob_size], DEFAULT_GAS_PER_BLOB_BYTE, DEFAULT_TX_SIZE_COST_PER_BYTE)


def calculate_fees(fee: int, gas_prices: float, gas: int) -> int:
    """Return the fixed fee when set, otherwise gas times gas price rounded up."""
    if fee != 0:
        return fee
    return int(math.ceil(gas_prices * gas))