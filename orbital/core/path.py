"""
Swap path codec.

A path is raw bytes interleaving 20-byte addresses:

    token_0 | pool_0 | token_1 | pool_1 | token_2 ...

so a path over k pools is 20 * (2k + 1) bytes long. Only hop-level access is
needed by the quoter: count the pools, read the first (token_in, pool,
token_out) triple, and drop the leading token + pool to advance.
"""

from __future__ import annotations

from typing import List, Sequence, Tuple

from ..errors import InvalidPath
from ..state.pools import normalize_address


ADDR_SIZE = 20
NEXT_OFFSET = 2 * ADDR_SIZE  # token + pool
POP_OFFSET = NEXT_OFFSET + ADDR_SIZE  # one full hop


def _to_bytes(address: str) -> bytes:
    return bytes.fromhex(normalize_address(address)[2:])


def _to_address(raw: bytes) -> str:
    return "0x" + raw.hex()


def _check(path: bytes) -> None:
    if not isinstance(path, (bytes, bytearray)):
        raise TypeError("path must be bytes")
    n = len(path)
    if n < POP_OFFSET or (n - ADDR_SIZE) % NEXT_OFFSET != 0:
        raise InvalidPath("length must be 20 * (2k + 1) with k >= 1", n)


def encode_path(tokens: Sequence[str], pools: Sequence[str]) -> bytes:
    if len(pools) < 1 or len(tokens) != len(pools) + 1:
        raise InvalidPath("need one more token than pools", len(tokens) + len(pools))
    out = bytearray(_to_bytes(tokens[0]))
    for pool, token in zip(pools, tokens[1:]):
        out += _to_bytes(pool)
        out += _to_bytes(token)
    return bytes(out)


def num_pools(path: bytes) -> int:
    _check(path)
    return (len(path) - ADDR_SIZE) // NEXT_OFFSET


def has_multiple_pools(path: bytes) -> bool:
    _check(path)
    return len(path) > POP_OFFSET


def decode_first_pool(path: bytes) -> Tuple[str, str, str]:
    """(token_in, pool, token_out) of the first hop."""
    _check(path)
    return (
        _to_address(path[:ADDR_SIZE]),
        _to_address(path[ADDR_SIZE:NEXT_OFFSET]),
        _to_address(path[NEXT_OFFSET:POP_OFFSET]),
    )


def skip_token(path: bytes) -> bytes:
    """Drop the first token and pool; the result starts at the next hop's input token."""
    _check(path)
    if not has_multiple_pools(path):
        raise InvalidPath("cannot advance past the last hop", len(path))
    return bytes(path[NEXT_OFFSET:])


def decode_path(path: bytes) -> List[Tuple[str, str, str]]:
    hops = [decode_first_pool(path)]
    while has_multiple_pools(path):
        path = skip_token(path)
        hops.append(decode_first_pool(path))
    return hops
