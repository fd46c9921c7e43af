"""Assets, chain messages and an in-memory view of chain state."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from fractions import Fraction
from typing import Union

from .errors import ContractError, checked_sub

DECIMAL_FRACTION = 10**18

_BALANCE_MISMATCH = (
    "Native token balance mismatch between the argument and the transferred"
)


@dataclass(frozen=True)
class Coin:
    """An amount of a native denomination."""

    denom: str
    amount: int

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"


@dataclass(frozen=True)
class NativeToken:
    """A native chain denomination."""

    denom: str

    def is_native_token(self) -> bool:
        return True

    def __str__(self) -> str:
        return self.denom


@dataclass(frozen=True)
class Token:
    """A token held in a token contract."""

    contract_addr: str

    def is_native_token(self) -> bool:
        return False

    def __str__(self) -> str:
        return self.contract_addr


AssetInfo = Union[NativeToken, Token]


@dataclass(frozen=True)
class BankSend:
    """Send native coins to an address."""

    to_address: str
    amount: tuple[Coin, ...]


@dataclass(frozen=True)
class WasmExecute:
    """Call a contract with a message and optional attached coins."""

    contract_addr: str
    msg: dict
    funds: tuple[Coin, ...] = ()


@dataclass(frozen=True)
class SwapMsg:
    """Swap native coins on the market module."""

    offer_coin: Coin
    ask_denom: str


@dataclass(frozen=True)
class SwapSendMsg:
    """Swap native coins on the market module and send the result."""

    to_address: str
    offer_coin: Coin
    ask_denom: str


@dataclass(frozen=True)
class Asset:
    """An amount of some asset."""

    info: AssetInfo
    amount: int

    def __str__(self) -> str:
        return f"{self.amount}{self.info}"

    def is_native_token(self) -> bool:
        return self.info.is_native_token()

    def assert_sent_native_token_balance(self, funds: Iterable[Coin]) -> None:
        """Raise ContractError unless ``funds`` carry exactly this native amount."""
        if not isinstance(self.info, NativeToken):
            return
        sent = next((coin for coin in funds if coin.denom == self.info.denom), None)
        sent_amount = 0 if sent is None else sent.amount
        if sent_amount != self.amount:
            raise ContractError(_BALANCE_MISMATCH)

    def into_msg(self, querier: Querier, recipient: str) -> BankSend | WasmExecute:
        """Message transferring this asset to ``recipient``; native sends pay tax."""
        if isinstance(self.info, NativeToken):
            tax = compute_tax(querier, self.amount, self.info.denom)
            amount = checked_sub(self.amount, tax)
            return BankSend(recipient, (Coin(self.info.denom, amount),))
        return WasmExecute(
            self.info.contract_addr,
            {"transfer": {"recipient": recipient, "amount": self.amount}},
        )


@dataclass(frozen=True)
class PairInfo:
    """Addresses and assets of a swap pair."""

    contract_addr: str
    liquidity_token: str
    asset_infos: tuple[AssetInfo, ...]


def _as_fraction(rate: Fraction | Decimal | str | int | float) -> Fraction:
    if isinstance(rate, float):
        return Fraction(str(rate))
    return Fraction(rate)


@dataclass
class Querier:
    """Chain state that contracts read: balances, token ledgers, tax and pairs."""

    tax_rate: Fraction = Fraction(0)
    _balances: dict[str, dict[str, int]] = field(default_factory=dict, repr=False)
    _tokens: dict[str, dict[str, int]] = field(default_factory=dict, repr=False)
    _tax_caps: dict[str, int] = field(default_factory=dict, repr=False)
    _pairs: dict[str, str] = field(default_factory=dict, repr=False)

    def balance(self, address: str, denom: str) -> int:
        """Native balance of ``address`` in ``denom``; zero when unknown."""
        return self._balances.get(address, {}).get(denom, 0)

    def _ledger(self, token: str) -> dict[str, int]:
        try:
            return self._tokens[token]
        except KeyError:
            raise ContractError(
                f"No balance info exists for the contract {token}"
            ) from None

    def token_balance(self, token: str, address: str) -> int:
        """Balance of ``address`` in token contract ``token``."""
        return self._ledger(token).get(address, 0)

    def token_supply(self, token: str) -> int:
        """Total supply of token contract ``token``."""
        return sum(self._ledger(token).values())

    def query_pool(self, asset_info: AssetInfo, address: str) -> int:
        """Balance of ``address`` in whatever asset ``asset_info`` names."""
        if isinstance(asset_info, NativeToken):
            return self.balance(address, asset_info.denom)
        return self.token_balance(asset_info.contract_addr, address)

    def tax_cap(self, denom: str) -> int:
        """Largest tax charged on one transfer of ``denom``; zero when unset."""
        return self._tax_caps.get(denom, 0)

    def pair(self, factory: str, asset_infos: Sequence[AssetInfo]) -> PairInfo:
        """Pair registered with ``factory`` for the ordered ``asset_infos``."""
        key = "".join(str(info) for info in asset_infos)
        try:
            address = self._pairs[key]
        except KeyError:
            raise ContractError("No pair info exists") from None
        return PairInfo(address, "liquidity", tuple(asset_infos))

    def market_swap(self, offer_coin: Coin, ask_denom: str) -> Coin:
        """Coin received when swapping ``offer_coin`` on the market at par."""
        return Coin(ask_denom, offer_coin.amount)

    def set_balance(self, address: str, coins: Iterable[Coin]) -> None:
        """Replace the native balances of ``address``."""
        self._balances[address] = {coin.denom: coin.amount for coin in coins}

    def set_token_balances(self, token: str, balances: Mapping[str, int]) -> None:
        """Replace the ledger of token contract ``token``."""
        self._tokens[token] = dict(balances)

    def set_tax(
        self,
        rate: Fraction | Decimal | str | int | float,
        caps: Mapping[str, int],
    ) -> None:
        """Set the tax rate and the per-denomination tax caps."""
        self.tax_rate = _as_fraction(rate)
        self._tax_caps = dict(caps)

    def set_pair(self, asset_infos: Sequence[AssetInfo], pair_address: str) -> None:
        """Register a pair contract for the ordered ``asset_infos``."""
        self._pairs["".join(str(info) for info in asset_infos)] = pair_address


def compute_tax(querier: Querier, amount: int, denom: str) -> int:
    """Tax charged when ``amount`` of ``denom`` is transferred, capped per denom."""
    if denom == "uluna":
        return 0
    rate_part = math.floor(DECIMAL_FRACTION * querier.tax_rate)
    after_tax = amount * DECIMAL_FRACTION // (rate_part + DECIMAL_FRACTION)
    return min(checked_sub(amount, after_tax), querier.tax_cap(denom))