"""StableSwap invariant math on unsigned integer amounts.

Amounts are plain non-negative integers. The arithmetic keeps to the
bounds of 128-bit unsigned amounts and 64-bit unsigned share counts:
leaving those bounds raises AmountOverflowError, and dividing by zero
raises ZeroDivisionError.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .errors import AmountOverflowError, checked_sub

ITERATIONS = 32
FEE_DENOMINATOR = 10_000

U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1


def _add(a: int, b: int, limit: int = U128_MAX) -> int:
    result = a + b
    if result > limit:
        raise AmountOverflowError("Add", a, b)
    return result


def _mul(a: int, b: int, limit: int = U128_MAX) -> int:
    result = a * b
    if result > limit:
        raise AmountOverflowError("Mul", a, b)
    return result


def _div(a: int, b: int) -> int:
    if b == 0:
        raise ZeroDivisionError(f"cannot divide {a} by zero")
    return a // b


def _pow(base: int, exponent: int) -> int:
    result = base**exponent
    if result > U128_MAX:
        raise AmountOverflowError("Pow", base, exponent)
    return result


def _to_u64(value: int) -> int:
    if value > U64_MAX:
        raise AmountOverflowError("Convert", value, U64_MAX)
    return value


def _converged(previous: int, current: int) -> bool:
    return abs(current - previous) <= 1


@dataclass(frozen=True)
class Curve:
    """A stable-swap curve with amplification ``amp`` and a fee in basis points."""

    amp: int
    fee_numerator: int

    def _ann(self, n_coins: int) -> int:
        return _mul(self.amp, n_coins, U64_MAX)

    def _imbalance_fee(self, n_coins: int) -> int:
        fee = _mul(self.fee_numerator, n_coins, U64_MAX) // 4
        return _div(fee, n_coins - 1)

    def _solve_y(self, b: int, c: int, d: int) -> int:
        y = d
        for _ in range(ITERATIONS):
            y_prev = y
            numerator = _add(_mul(y, y), c)
            denominator = checked_sub(_add(_mul(y, 2), b), d)
            y = _div(numerator, denominator)
            if _converged(y_prev, y):
                break
        return y

    def reverse_exchange(
        self, i: int, j: int, out_amount: int, balances: Sequence[int]
    ) -> int:
        """Amount of coin ``j`` needed so that ``out_amount`` of coin ``i`` can leave."""
        fee_base = checked_sub(FEE_DENOMINATOR, self.fee_numerator)
        out_amount_after_fee = _div(_mul(out_amount, FEE_DENOMINATOR), fee_base)
        x = checked_sub(balances[i], out_amount_after_fee)
        y = self.get_y(i, j, x, balances)
        return _add(checked_sub(y, balances[j]), 1)

    def get_d(self, amounts: Sequence[int], d_suggest: int | None = None) -> int:
        """Compute the invariant D for ``amounts``, optionally starting from a guess."""
        n_coins = len(amounts)
        sum_x = 0
        for amount in amounts:
            sum_x = _add(sum_x, amount)
        if sum_x == 0:
            return 0

        amounts_times_coin = [_mul(amount, n_coins) for amount in amounts]

        ann = self._ann(n_coins)
        ann_mul_sum_x = _mul(ann, sum_x)
        ann_sub_one = checked_sub(ann, 1)

        d = sum_x if d_suggest is None else d_suggest
        for _ in range(ITERATIONS):
            d_prod = d
            for amount_times_coin in amounts_times_coin:
                d_prod = _div(_mul(d_prod, d), amount_times_coin)
            d_prev = d
            d_prod_mul_n_coins = _mul(d_prod, n_coins)
            numerator = _mul(_add(ann_mul_sum_x, d_prod_mul_n_coins), d)
            denominator = _add(
                _mul(d, ann_sub_one), _add(d_prod, d_prod_mul_n_coins)
            )
            d = _div(numerator, denominator)
            if _converged(d_prev, d):
                break
        return d

    def get_y_d(self, i: int, amounts: Sequence[int], d: int) -> int:
        """Balance of coin ``i`` that brings the invariant of ``amounts`` to ``d``."""
        n_coins = len(amounts)
        ann = self._ann(n_coins)

        c = d
        s = 0
        for k, amount in enumerate(amounts):
            if k == i:
                continue
            s = _add(s, amount)
            c = _div(_mul(c, d), _mul(amount, n_coins))
        c = _div(_mul(c, d), _mul(ann, n_coins, U64_MAX))

        b = _add(s, _div(d, ann))
        return self._solve_y(b, c, d)

    def get_y(self, i: int, j: int, x: int, balances: Sequence[int]) -> int:
        """New balance of coin ``j`` once coin ``i`` has balance ``x``."""
        n_coins = len(balances)
        d = self.get_d(balances)
        ann = self._ann(n_coins)

        c = d
        s = 0
        for k, balance in enumerate(balances):
            if k == i:
                x_temp = x
            elif k != j:
                x_temp = balance
            else:
                continue
            s = _add(s, x_temp)
            c = _div(_mul(c, d), _mul(x_temp, n_coins))
        c = _div(_mul(c, d), _mul(ann, n_coins, U64_MAX))

        b = _add(s, _div(d, ann))
        return self._solve_y(b, c, d)

    def get_virtual_price(
        self, balances: Sequence[int], lp_token_total: int, precision_factor: int
    ) -> int:
        """Invariant per share, scaled by ``10 ** precision_factor``."""
        d = self.get_d(balances)
        virtual_price = _div(_mul(d, _pow(10, precision_factor)), lp_token_total)
        return _to_u64(virtual_price)

    def deposit(
        self,
        old_balances: Sequence[int],
        new_balances: Sequence[int],
        lp_token_total: int,
    ) -> int:
        """Number of shares to mint when the pool moves from old to new balances.

        Raises ValueError when the deposit does not raise the invariant.
        """
        n_coins = len(old_balances)
        d_0 = self.get_d(old_balances)
        d_1 = self.get_d(new_balances)

        if d_1 <= d_0:
            raise ValueError("deposit does not increase the pool invariant")

        if lp_token_total <= 0:
            return _to_u64(d_1)

        fee = self._imbalance_fee(n_coins)
        after_fee = []
        for old_balance, new_balance in zip(old_balances, new_balances):
            ideal_balance = _div(_mul(d_1, old_balance), d_0)
            difference = abs(new_balance - ideal_balance)
            fee_for_token = _div(_mul(fee, difference), FEE_DENOMINATOR)
            after_fee.append(checked_sub(new_balance, fee_for_token))

        new_sum_x = 0
        for balance in new_balances:
            new_sum_x = _add(new_sum_x, balance)
        fee_sum_x = 0
        for balance in after_fee:
            fee_sum_x = _add(fee_sum_x, balance)

        d_suggest = _div(_mul(fee_sum_x, d_1), new_sum_x)
        d_2 = self.get_d(after_fee, d_suggest)
        d_diff = checked_sub(d_2, d_0)
        mint_amount = _div(_mul(lp_token_total, d_diff), d_0)
        return _to_u64(mint_amount)

    @staticmethod
    def remove_balanced_liquidity(
        old_balances: Sequence[int], unmint_amount: int, lp_total_supply: int
    ) -> list[int]:
        """Amounts of each coin returned for burning ``unmint_amount`` shares."""
        return [
            _div(_mul(balance, unmint_amount), lp_total_supply)
            for balance in old_balances
        ]

    def remove_liquidity_single_token(
        self,
        old_balances: Sequence[int],
        unmint_amount: int,
        i: int,
        lp_total_supply: int,
    ) -> int:
        """Amount of coin ``i`` returned for burning ``unmint_amount`` shares."""
        n_coins = len(old_balances)

        d0 = self.get_d(old_balances)
        d1 = checked_sub(d0, _div(_mul(unmint_amount, d0), lp_total_supply))
        new_y = self.get_y_d(i, old_balances, d1)

        fee = self._imbalance_fee(n_coins)

        xp_reduced = []
        for j, old_balance in enumerate(old_balances):
            scaled = _div(_mul(old_balance, d1), d0)
            if j == i:
                dx_expected = checked_sub(scaled, new_y)
            else:
                dx_expected = checked_sub(old_balance, scaled)
            xp_reduced.append(
                checked_sub(
                    old_balance, _div(_mul(fee, dx_expected), FEE_DENOMINATOR)
                )
            )

        dy = checked_sub(xp_reduced[i], self.get_y_d(i, xp_reduced, d1))
        # One unit is held back so that tiny withdrawals cannot round in the user's favour.
        dy = checked_sub(dy, 1)
        return _to_u64(dy)

    def exchange(
        self, i: int, j: int, in_amount: int, balances: Sequence[int]
    ) -> int:
        """Amount of coin ``j`` paid out for ``in_amount`` of coin ``i``, after fee."""
        x = _add(balances[i], in_amount)
        y = self.get_y(i, j, x, balances)
        # One unit is held back so that tiny swaps cannot round in the user's favour.
        dy = checked_sub(checked_sub(balances[j], y), 1)
        dy_fee = _div(_mul(dy, self.fee_numerator), FEE_DENOMINATOR)
        return checked_sub(dy, dy_fee)