"""Errors raised by the pool and router."""

from __future__ import annotations


class ContractError(Exception):
    """A failed contract call; built directly it carries a generic message."""

    default_message = "contract error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(self.default_message if message is None else message)

    @property
    def message(self) -> str:
        return str(self.args[0])


class AmountOverflowError(ContractError, ArithmeticError):
    """An amount left the range of unsigned integers it must stay in."""

    def __init__(self, operation: str, operand1: int, operand2: int) -> None:
        self.operation = operation
        self.operand1 = operand1
        self.operand2 = operand2
        super().__init__(f"Cannot {operation} with {operand1} and {operand2}")


class Unauthorized(ContractError):
    default_message = "Unauthorized"


class InvalidZeroAmount(ContractError):
    default_message = "Invalid zero amount"


class MaxSpreadAssertion(ContractError):
    default_message = "Max spread assertion"


class MaxSlippageAssertion(ContractError):
    default_message = "Max slippage assertion"


class AssetMismatch(ContractError):
    default_message = "Asset mismatch"


class TooSmallOfferAmount(ContractError):
    default_message = "Too small offer amount"


def checked_sub(a: int, b: int) -> int:
    """Return ``a - b``, raising AmountOverflowError if it would go below zero."""
    if b > a:
        raise AmountOverflowError("Sub", a, b)
    return a - b