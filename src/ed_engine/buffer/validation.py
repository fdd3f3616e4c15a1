"""Address validation helpers shared across buffer services."""

from __future__ import annotations

from ed_engine.errors import InvalidAddress


def ensure_address(address: int, last_address: int, *, allow_zero: bool = False) -> int:
    lowest = 0 if allow_zero else 1
    if address < lowest or address > last_address:
        raise InvalidAddress(address=address)
    return address


def ensure_range(first: int, second: int, last_address: int) -> tuple[int, int]:
    if first < 1 or first > second or second > last_address:
        raise InvalidAddress(address=first if first < 1 else second)
    return first, second
