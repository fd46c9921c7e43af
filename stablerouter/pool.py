"""A stable-swap liquidity pool paired with an LP token contract."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import NamedTuple

from .chain import (
    Asset,
    AssetInfo,
    Coin,
    PairInfo,
    Querier,
    Token,
    WasmExecute,
)
from .curve import Curve
from .errors import (
    AssetMismatch,
    ContractError,
    InvalidZeroAmount,
    MaxSlippageAssertion,
    Unauthorized,
    checked_sub,
)

INSTANTIATE_REPLY_ID = 1
DECIMAL_FRACTION = 10**18


class _Outcome(NamedTuple):
    messages: list
    attributes: list[tuple[str, str]]


class _PoolState(NamedTuple):
    assets: list[Asset]
    total_share: int


def _read_varint(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data) or shift > 63:
            raise ValueError("truncated varint")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7


def parse_instantiate_response(data: bytes) -> str:
    """Contract address carried by an encoded MsgInstantiateContractResponse."""
    data = bytes(data)
    address = ""
    pos = 0
    try:
        while pos < len(data):
            key, pos = _read_varint(data, pos)
            field_number, wire_type = key >> 3, key & 7
            if field_number == 0:
                raise ValueError("invalid field number")
            value = b""
            if wire_type == 0:
                _, pos = _read_varint(data, pos)
            elif wire_type in (1, 5):
                pos += 8 if wire_type == 1 else 4
                if pos > len(data):
                    raise ValueError("truncated fixed field")
            elif wire_type == 2:
                length, pos = _read_varint(data, pos)
                end = pos + length
                if end > len(data):
                    raise ValueError("truncated length-delimited field")
                value = data[pos:end]
                pos = end
            else:
                raise ValueError("unsupported wire type")

            if field_number in (1, 2) and wire_type != 2:
                raise ValueError("unexpected wire type")
            if field_number == 1:
                address = value.decode("utf-8")
    except ValueError:
        raise ContractError(
            "Error parsing into type MsgInstantiateContractResponse: "
            "failed to parse data"
        ) from None
    return address


def amount_of(coins: Iterable[Coin], denom: str) -> int:
    """Amount of ``denom`` among ``coins``; zero when absent."""
    return next((coin.amount for coin in coins if coin.denom == denom), 0)


@dataclass
class StablePool:
    """A pool of assets priced along a stable-swap curve."""

    asset_infos: tuple[AssetInfo, ...]
    amplification: int
    fee: int
    token_code_id: int
    querier: Querier = field(default_factory=Querier)
    contract_address: str = "pair"
    liquidity_token: str = ""
    instantiate_msg: dict = field(init=False)

    def __post_init__(self) -> None:
        self.asset_infos = tuple(self.asset_infos)
        self.instantiate_msg = {
            "code_id": self.token_code_id,
            "msg": {
                "name": "terraswap liquidity token",
                "symbol": "uLP",
                "decimals": 6,
                "initial_balances": [],
                "mint": {"minter": self.contract_address, "cap": None},
            },
            "funds": (),
            "label": "",
            "admin": None,
            "reply_id": INSTANTIATE_REPLY_ID,
            "reply_on": "success",
        }

    @property
    def _curve(self) -> Curve:
        return Curve(amp=self.amplification, fee_numerator=self.fee)

    def _pools(self) -> list[Asset]:
        return [
            Asset(info, self.querier.query_pool(info, self.contract_address))
            for info in self.asset_infos
        ]

    def reply(self, data: bytes) -> _Outcome:
        """Record the LP token address from the token instantiation reply."""
        self.liquidity_token = parse_instantiate_response(data)
        return _Outcome([], [("liquidity_token_addr", self.liquidity_token)])

    def provide_liquidity(
        self,
        sender: str,
        funds: Sequence[Coin],
        assets: Sequence[Asset],
        min_out_amount: int = 0,
        receiver: str | None = None,
    ) -> _Outcome:
        """Deposit ``assets`` and mint LP shares to ``receiver`` (default ``sender``)."""
        for asset in assets:
            asset.assert_sent_native_token_balance(funds)

        pools = self._pools()
        if len(assets) != len(pools) or any(
            asset.info != pool.info for asset, pool in zip(assets, pools)
        ):
            raise AssetMismatch()
        deposits = [asset.amount for asset in assets]

        messages: list = []
        balances = []
        for pool, deposit in zip(pools, deposits):
            if isinstance(pool.info, Token):
                messages.append(
                    WasmExecute(
                        pool.info.contract_addr,
                        {
                            "transfer_from": {
                                "owner": sender,
                                "recipient": self.contract_address,
                                "amount": deposit,
                            }
                        },
                    )
                )
                balances.append(pool.amount)
            else:
                # Native deposits already sit in the pool balance.
                balances.append(checked_sub(pool.amount, deposit))

        total_share = self.querier.token_supply(self.liquidity_token)
        new_balances = [old + deposit for old, deposit in zip(balances, deposits)]

        share = self._curve.deposit(balances, new_balances, total_share)
        if share < min_out_amount:
            raise MaxSlippageAssertion()
        if share == 0:
            raise InvalidZeroAmount()

        receiver = sender if receiver is None else receiver
        messages.append(
            WasmExecute(
                self.liquidity_token,
                {"mint": {"recipient": receiver, "amount": share}},
            )
        )
        return _Outcome(
            messages,
            [
                ("action", "provide_liquidity"),
                ("sender", sender),
                ("receiver", receiver),
                ("share", str(share)),
            ],
        )

    def withdraw_liquidity(self, sender: str, amount: int) -> _Outcome:
        """Burn ``amount`` shares and refund every asset pro rata to ``sender``."""
        pools = self._pools()
        total_share = self.querier.token_supply(self.liquidity_token)
        if total_share == 0:
            raise ContractError("Denominator must not be zero")

        share_ratio = amount * DECIMAL_FRACTION // total_share
        messages: list = [
            Asset(pool.info, pool.amount * share_ratio // DECIMAL_FRACTION).into_msg(
                self.querier, sender
            )
            for pool in pools
        ]
        messages.append(WasmExecute(self.liquidity_token, {"burn": {"amount": amount}}))
        return _Outcome(
            messages,
            [
                ("action", "withdraw_liquidity"),
                ("sender", sender),
                ("withdrawn_share", str(amount)),
            ],
        )

    def withdraw_single_liquidity(
        self,
        sender: str,
        asset: Asset,
        unmint_amount: int,
        min_out_amount: int = 0,
    ) -> _Outcome:
        """Burn ``unmint_amount`` shares and refund one asset to ``sender``."""
        pools = self._pools()
        total_share = self.querier.token_supply(self.liquidity_token)

        index = next(
            (k for k, pool in enumerate(pools) if pool.info == asset.info), None
        )
        if index is None:
            raise AssetMismatch()

        old_balances = [pool.amount for pool in pools]
        out_amount = self._curve.remove_liquidity_single_token(
            old_balances, unmint_amount, index, total_share
        )
        if out_amount <= min_out_amount:
            raise MaxSlippageAssertion()

        refund_asset = Asset(pools[index].info, out_amount)
        messages = [
            refund_asset.into_msg(self.querier, sender),
            WasmExecute(self.liquidity_token, {"burn": {"amount": unmint_amount}}),
        ]
        return _Outcome(
            messages,
            [
                ("action", "withdraw_single_liquidity"),
                ("sender", sender),
                ("withdrawn_share", str(unmint_amount)),
                ("refund_asset", str(refund_asset)),
            ],
        )

    def swap(
        self,
        sender: str,
        funds: Sequence[Coin],
        offer_asset: Asset,
        ask_asset: Asset,
        min_out_amount: int = 0,
        to: str | None = None,
    ) -> _Outcome:
        """Swap a native ``offer_asset`` sent in ``funds`` for ``ask_asset``."""
        if not offer_asset.is_native_token():
            raise Unauthorized()
        return self._swap(sender, funds, offer_asset, ask_asset, min_out_amount, to)

    def _swap(
        self,
        sender: str,
        funds: Sequence[Coin],
        offer_asset: Asset,
        ask_asset: Asset,
        min_out_amount: int,
        to: str | None,
    ) -> _Outcome:
        offer_asset.assert_sent_native_token_balance(funds)
        pools = self._pools()

        offer_index = 0
        ask_index = 0
        ask_pool = pools[0]
        balances = []
        for index, pool in enumerate(pools):
            if offer_asset.info == pool.info:
                offer_index = index
                balances.append(checked_sub(pool.amount, offer_asset.amount))
                continue
            if ask_asset.info == pool.info:
                ask_index = index
                ask_pool = pool
            balances.append(pool.amount)

        return_amount = self._curve.exchange(
            offer_index, ask_index, offer_asset.amount, balances
        )
        if return_amount <= min_out_amount:
            raise MaxSlippageAssertion()

        receiver = sender if to is None else to
        messages: list = []
        if return_amount:
            messages.append(
                Asset(ask_pool.info, return_amount).into_msg(self.querier, receiver)
            )
        return _Outcome(
            messages,
            [
                ("action", "swap"),
                ("sender", sender),
                ("receiver", receiver),
                ("offer_asset", str(offer_asset.info)),
                ("ask_asset", str(ask_pool.info)),
                ("offer_amount", str(offer_asset.amount)),
                ("return_amount", str(return_amount)),
            ],
        )

    def receive_swap(
        self,
        token: str,
        sender: str,
        amount: int,
        ask_asset: Asset,
        min_out_amount: int = 0,
        to: str | None = None,
    ) -> _Outcome:
        """Swap ``amount`` of token ``token`` sent by ``sender`` for ``ask_asset``."""
        if not any(
            isinstance(info, Token) and info.contract_addr == token
            for info in self.asset_infos
        ):
            raise Unauthorized()
        return self._swap(
            sender, (), Asset(Token(token), amount), ask_asset, min_out_amount, to
        )

    def receive_withdraw(self, token: str, sender: str, amount: int) -> _Outcome:
        """Withdraw for LP shares ``amount`` sent from the LP token contract."""
        if token != self.liquidity_token:
            raise Unauthorized()
        return self.withdraw_liquidity(sender, amount)

    def receive_withdraw_single(
        self,
        token: str,
        sender: str,
        amount: int,
        asset: Asset,
        min_out_amount: int = 0,
    ) -> _Outcome:
        """Single-asset withdrawal for LP shares sent from the LP token contract.

        The refund goes to the calling contract, ``token``.
        """
        if token != self.liquidity_token:
            raise Unauthorized()
        return self.withdraw_single_liquidity(token, asset, amount, min_out_amount)

    def query_pair_info(self) -> PairInfo:
        """Addresses and assets of this pool."""
        return PairInfo(self.contract_address, self.liquidity_token, self.asset_infos)

    def query_pool(self) -> _PoolState:
        """Current pool balances and total LP supply."""
        return _PoolState(
            self._pools(), self.querier.token_supply(self.liquidity_token)
        )