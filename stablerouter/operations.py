"""Single swap hops executed by the router."""

from __future__ import annotations

from dataclasses import dataclass
from fractions import Fraction
from typing import Union

from .chain import (
    Asset,
    AssetInfo,
    Coin,
    NativeToken,
    Querier,
    SwapMsg,
    SwapSendMsg,
    WasmExecute,
    compute_tax,
)
from .errors import ContractError, checked_sub


@dataclass(frozen=True)
class NativeSwap:
    """A swap between two native denominations on the market module."""

    offer_denom: str
    ask_denom: str

    def target_asset_info(self) -> AssetInfo:
        return NativeToken(self.ask_denom)


@dataclass(frozen=True)
class PoolSwap:
    """A swap through a pair contract."""

    offer_asset_info: AssetInfo
    ask_asset_info: AssetInfo

    def target_asset_info(self) -> AssetInfo:
        return self.ask_asset_info


SwapOperation = Union[NativeSwap, PoolSwap]


def execute_swap_operation(
    querier: Querier,
    contract_address: str,
    factory: str,
    sender: str,
    operation: SwapOperation,
    to: str | None = None,
) -> list[SwapMsg | SwapSendMsg | WasmExecute]:
    """Messages swapping the contract's whole balance of the offer asset.

    Only the contract itself may run a hop; anyone else gets ContractError.
    """
    if sender != contract_address:
        raise ContractError("unauthorized")

    if isinstance(operation, NativeSwap):
        denom = operation.offer_denom
        amount = querier.balance(contract_address, denom)
        if to is not None:
            # The last hop sends the result on, so the transfer tax comes off first.
            amount = checked_sub(amount, compute_tax(querier, amount, denom))
            return [SwapSendMsg(to, Coin(denom, amount), operation.ask_denom)]
        return [SwapMsg(Coin(denom, amount), operation.ask_denom)]

    pair_info = querier.pair(
        factory, [operation.offer_asset_info, operation.ask_asset_info]
    )
    amount = querier.query_pool(operation.offer_asset_info, contract_address)
    offer_asset = Asset(operation.offer_asset_info, amount)
    return [
        asset_into_swap_msg(querier, pair_info.contract_addr, offer_asset, None, to)
    ]


def asset_into_swap_msg(
    querier: Querier,
    pair_contract: str,
    offer_asset: Asset,
    max_spread: Fraction | None = None,
    to: str | None = None,
) -> WasmExecute:
    """Message offering ``offer_asset`` to the pair at ``pair_contract``."""
    info = offer_asset.info
    if isinstance(info, NativeToken):
        amount = checked_sub(
            offer_asset.amount, compute_tax(querier, offer_asset.amount, info.denom)
        )
        swap = {
            "swap": {
                "offer_asset": Asset(info, amount),
                "belief_price": None,
                "max_spread": max_spread,
                "to": to,
            }
        }
        return WasmExecute(pair_contract, swap, (Coin(info.denom, amount),))

    swap = {
        "swap": {
            "offer_asset": offer_asset,
            "belief_price": None,
            "max_spread": max_spread,
            "to": to,
        }
    }
    return WasmExecute(
        info.contract_addr,
        {
            "send": {
                "contract": pair_contract,
                "amount": offer_asset.amount,
                "msg": swap,
            }
        },
    )