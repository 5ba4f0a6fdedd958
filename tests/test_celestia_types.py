import pytest

from dalink.celestia_types import (
    CONTINUATION_SPARSE_SHARE_CONTENT_SIZE,
    FIRST_SPARSE_SHARE_CONTENT_SIZE,
    sparse_shares_needed,
)


def capacity(shares):
    if shares == 0:
        return 0
    return FIRST_SPARSE_SHARE_CONTENT_SIZE + (shares - 1) * CONTINUATION_SPARSE_SHARE_CONTENT_SIZE


def test_empty_sequence():
    assert sparse_shares_needed(0) == 0


def test_boundary_of_first_share():
    assert sparse_shares_needed(FIRST_SPARSE_SHARE_CONTENT_SIZE) == 1
    assert sparse_shares_needed(FIRST_SPARSE_SHARE_CONTENT_SIZE + 1) == 2


@pytest.mark.parametrize(
    "length",
    [1, 100, FIRST_SPARSE_SHARE_CONTENT_SIZE - 1,
     FIRST_SPARSE_SHARE_CONTENT_SIZE + CONTINUATION_SPARSE_SHARE_CONTENT_SIZE,
     FIRST_SPARSE_SHARE_CONTENT_SIZE + CONTINUATION_SPARSE_SHARE_CONTENT_SIZE + 1,
     3576, 6282, 12074, 506524, 1499572],
)
def test_shares_are_minimal_and_sufficient(length):
    shares = sparse_shares_needed(length)
    assert capacity(shares) >= length
    assert capacity(shares - 1) < length


def test_monotonic():
    counts = [sparse_shares_needed(n) for n in range(0, 5000, 7)]
    assert counts == sorted(counts)


def test_negative_rejected():
    with pytest.raises(ValueError):
        sparse_shares_needed(-1)