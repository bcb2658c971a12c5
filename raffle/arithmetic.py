"""Checked arithmetic over 256-bit unsigned integers.

Python integers never wrap, so each operation computes the wrapped result a
fixed-width machine would produce and applies the classic overflow checks to
it. Amounts flowing through the engine never leave ``[0, UINT256_MAX]``.
"""

from __future__ import annotations

from .errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero

UINT256_BITS = 256
UINT256_MAX = (1 << UINT256_BITS) - 1


def as_uint(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an unsigned integer, got {type(value).__name__}")
    if value < 0:
        raise ArithmeticUnderflow(f"{value} is below zero")
    if value > UINT256_MAX:
        raise ArithmeticOverflow(f"{value} does not fit in {UINT256_BITS} bits")
    return value


def add(a: int, b: int) -> int:
    a, b = as_uint(a), as_uint(b)
    result = (a + b) & UINT256_MAX
    if result < a or result < b:
        raise ArithmeticOverflow(f"{a} + {b} overflows")
    return result


def sub(a: int, b: int) -> int:
    a, b = as_uint(a), as_uint(b)
    if b > a:
        raise ArithmeticUnderflow(f"{a} - {b} underflows")
    return a - b


def mul(a: int, b: int) -> int:
    a, b = as_uint(a), as_uint(b)
    if a == 0:
        return 0
    result = (a * b) & UINT256_MAX
    if result // a != b:
        raise ArithmeticOverflow(f"{a} * {b} overflows")
    return result


def div(a: int, b: int) -> int:
    a, b = as_uint(a), as_uint(b)
    if b == 0:
        raise DivisionByZero(f"{a} / 0")
    return a // b


def ceil_div(a: int, b: int) -> int:
    quotient = div(a, b)
    if a % b:
        quotient = add(quotient, 1)
    return quotient
