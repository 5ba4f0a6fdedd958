"""Share layout constants and share counting for the Celestia network."""

from __future__ import annotations

NAMESPACE_VERSION_SIZE = 1
NAMESPACE_VERSION_MAX_VALUE = 255
NAMESPACE_ID_SIZE = 28
NAMESPACE_SIZE = NAMESPACE_VERSION_SIZE + NAMESPACE_ID_SIZE
SHARE_SIZE = 512
SHARE_INFO_BYTES = 1
SEQUENCE_LEN_BYTES = 4
SHARE_VERSION_ZERO = 0
DEFAULT_SHARE_VERSION = SHARE_VERSION_ZERO
COMPACT_SHARE_RESERVED_BYTES = 4
FIRST_COMPACT_SHARE_CONTENT_SIZE = (
    SHARE_SIZE - NAMESPACE_SIZE - SHARE_INFO_BYTES - SEQUENCE_LEN_BYTES - COMPACT_SHARE_RESERVED_BYTES
)
CONTINUATION_COMPACT_SHARE_CONTENT_SIZE = (
    SHARE_SIZE - NAMESPACE_SIZE - SHARE_INFO_BYTES - COMPACT_SHARE_RESERVED_BYTES
)
FIRST_SPARSE_SHARE_CONTENT_SIZE = SHARE_SIZE - NAMESPACE_SIZE - SHARE_INFO_BYTES - SEQUENCE_LEN_BYTES
CONTINUATION_SPARSE_SHARE_CONTENT_SIZE = SHARE_SIZE - NAMESPACE_SIZE - SHARE_INFO_BYTES
MIN_SQUARE_SIZE = 1
MIN_SHARE_COUNT = MIN_SQUARE_SIZE * MIN_SQUARE_SIZE
MAX_SHARE_VERSION = 127


def sparse_shares_needed(sequence_len: int) -> int:
    """Return the number of sparse shares needed to hold a sequence of this length."""
    if sequence_len < 0:
        raise ValueError("sequence length must not be negative")
    if sequence_len == 0:
        return 0
    if sequence_len <= FIRST_SPARSE_SHARE_CONTENT_SIZE:
        return 1
    remaining = sequence_len - FIRST_SPARSE_SHARE_CONTENT_SIZE
    return 1 + -(-remaining // CONTINUATION_SPARSE_SHARE_CONTENT_SIZE)