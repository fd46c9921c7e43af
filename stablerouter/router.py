"""Router that chains swap hops across the market module and pair contracts."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

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
from .operations import NativeSwap, SwapOperation
from .operations import execute_swap_operation as _execute_hop


def _simulate_at_par(pair_contract: str, offer_asset: Asset) -> int:
    """Pair simulation that returns the offered amount unchanged."""
    return offer_asset.amount


def assert_operations(operations: Sequence[SwapOperation]) -> None:
    """Raise ContractError unless the hops end in exactly one output asset."""
    outputs: set[str] = set()
    for operation in operations:
        if isinstance(operation, NativeSwap):
            offer: AssetInfo = NativeToken(operation.offer_denom)
            ask: AssetInfo = NativeToken(operation.ask_denom)
        else:
            offer = operation.offer_asset_info
            ask = operation.ask_asset_info
        outputs.discard(str(offer))
        outputs.add(str(ask))

    if len(outputs) != 1:
        raise ContractError("invalid operations; multiple output token")


@dataclass
class Router:
    """A swap router bound to a pair factory and a view of chain state."""

    terraswap_factory: str
    querier: Querier = field(default_factory=Querier)
    contract_address: str = "router"
    simulate_pair: Callable[[str, Asset], int] = _simulate_at_par

    def execute_swap_operations(
        self,
        sender: str,
        operations: Sequence[SwapOperation],
        minimum_receive: int | None = None,
        to: str | None = None,
    ) -> list[WasmExecute]:
        """Messages running each hop in turn, the last one paying out to ``to``."""
        operations = list(operations)
        if not operations:
            raise ContractError("must provide operations")

        assert_operations(operations)

        receiver = sender if to is None else to
        target_asset_info = operations[-1].target_asset_info()
        last = len(operations) - 1

        messages = [
            WasmExecute(
                self.contract_address,
                {
                    "execute_swap_operation": {
                        "operation": operation,
                        "to": receiver if index == last else None,
                    }
                },
            )
            for index, operation in enumerate(operations)
        ]

        if minimum_receive is not None:
            receiver_balance = self.querier.query_pool(target_asset_info, receiver)
            messages.append(
                WasmExecute(
                    self.contract_address,
                    {
                        "assert_minimum_receive": {
                            "asset_info": target_asset_info,
                            "prev_balance": receiver_balance,
                            "minimum_receive": minimum_receive,
                            "receiver": receiver,
                        }
                    },
                )
            )

        return messages

    def execute_swap_operation(
        self, sender: str, operation: SwapOperation, to: str | None = None
    ) -> list[SwapMsg | SwapSendMsg | WasmExecute]:
        """Messages for one hop; only the router itself may call this."""
        return _execute_hop(
            self.querier,
            self.contract_address,
            self.terraswap_factory,
            sender,
            operation,
            to,
        )

    def receive_cw20(
        self,
        sender: str,
        operations: Sequence[SwapOperation],
        minimum_receive: int | None = None,
        to: str | None = None,
    ) -> list[WasmExecute]:
        """Start a route on behalf of the token holder ``sender``."""
        return self.execute_swap_operations(sender, operations, minimum_receive, to)

    def assert_minimum_receive(
        self,
        asset_info: AssetInfo,
        prev_balance: int,
        minimum_receive: int,
        receiver: str,
    ) -> int:
        """Check the receiver gained at least ``minimum_receive``; return the gain."""
        receiver_balance = self.querier.query_pool(asset_info, receiver)
        swap_amount = checked_sub(receiver_balance, prev_balance)

        if swap_amount < minimum_receive:
            raise ContractError(
                f"assertion failed; minimum receive amount: {minimum_receive}, "
                f"swap amount: {swap_amount}"
            )
        return swap_amount

    def query_config(self) -> dict[str, str]:
        """The router's configuration."""
        return {"terraswap_factory": self.terraswap_factory}

    def simulate_swap_operations(
        self, offer_amount: int, operations: Sequence[SwapOperation]
    ) -> int:
        """Amount received after running ``offer_amount`` through every hop."""
        operations = list(operations)
        if not operations:
            raise ContractError("must provide operations")

        last = len(operations) - 1
        for index, operation in enumerate(operations):
            if isinstance(operation, NativeSwap):
                # The last native hop is a swap-and-send, which pays tax first.
                if index == last:
                    offer_amount = checked_sub(
                        offer_amount,
                        compute_tax(self.querier, offer_amount, operation.offer_denom),
                    )
                received = self.querier.market_swap(
                    Coin(operation.offer_denom, offer_amount), operation.ask_denom
                )
                offer_amount = received.amount
                continue

            offer_info = operation.offer_asset_info
            ask_info = operation.ask_asset_info
            pair_info = self.querier.pair(
                self.terraswap_factory, [offer_info, ask_info]
            )

            if isinstance(offer_info, NativeToken):
                offer_amount = checked_sub(
                    offer_amount,
                    compute_tax(self.querier, offer_amount, offer_info.denom),
                )

            return_amount = self.simulate_pair(
                pair_info.contract_addr, Asset(offer_info, offer_amount)
            )

            if isinstance(ask_info, NativeToken):
                return_amount = checked_sub(
                    return_amount,
                    compute_tax(self.querier, return_amount, ask_info.denom),
                )

            offer_amount = return_amount

        return offer_amount