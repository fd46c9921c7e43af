# stablerouter

Pure-Python models of an automated market maker built around the StableSwap
invariant. Amounts are plain non-negative integers and every calculation is
exact integer arithmetic.

- `stablerouter.curve.Curve` – StableSwap math with an amplification `amp`
  and a fee `fee_numerator` over a denominator of 10,000: the invariant
  (`get_d`), the balance that restores an invariant (`get_y`, `get_y_d`),
  `exchange` and `reverse_exchange`, `deposit` (shares to mint),
  `remove_balanced_liquidity`, `remove_liquidity_single_token` and
  `get_virtual_price`.
- `stablerouter.chain` – what the contracts work with: `Coin`, the asset kinds
  `NativeToken` and `Token`, `Asset`, `PairInfo`, the outgoing messages
  `BankSend`, `WasmExecute`, `SwapMsg` and `SwapSendMsg`, and an in-memory
  `Querier` holding native balances, token ledgers, the tax rate and caps, and
  registered pairs. `compute_tax` gives the tax charged on a native transfer
  (nothing for `uluna`, otherwise capped per denomination).
- `stablerouter.operations` – single swap hops (`NativeSwap`, `PoolSwap`),
  `execute_swap_operation`, which builds the messages for one hop, and
  `asset_into_swap_msg`.
- `stablerouter.router` – `Router` chains hops, checks with
  `assert_operations` that they end in exactly one output asset, enforces a
  minimum amount received and simulates a route.
- `stablerouter.pool` – `StablePool`: provide liquidity, withdraw pro rata or
  into a single asset, and swap between the pool's assets;
  `parse_instantiate_response` reads the LP token address from an encoded
  instantiation reply, and `amount_of` picks one denomination out of a list
  of coins.
- `stablerouter.errors` – `ContractError` and its subclasses
  (`Unauthorized`, `InvalidZeroAmount`, `MaxSpreadAssertion`,
  `MaxSlippageAssertion`, `AssetMismatch`, `TooSmallOfferAmount`,
  `AmountOverflowError`) and `checked_sub`.

## Installation

```
pip install .
```

## Curve math

```python
from stablerouter.curve import Curve

curve = Curve(amp=60, fee_numerator=4)
d = curve.get_d([30_000_000_000, 20_000_000_000])
out = curve.exchange(0, 1, 1_500_000_000, [30_000_000_000, 20_000_000_000])
```

Results stay within 128-bit unsigned amounts (64-bit for share counts and
single-token withdrawals); leaving that range, or going below zero, raises
`AmountOverflowError`. Dividing by a zero balance or supply raises
`ZeroDivisionError`, and a `deposit` that does not raise the invariant
raises `ValueError`.

## Routing

```python
from stablerouter.chain import NativeToken, Querier, Token
from stablerouter.operations import NativeSwap, PoolSwap
from stablerouter.router import Router

querier = Querier()
querier.set_tax("0.05", {"uusd": 1_000_000})
querier.set_pair([NativeToken("ukrw"), Token("asset0000")], "pair0000")

router = Router("factory", querier)
route = [NativeSwap("uusd", "ukrw"), PoolSwap(NativeToken("ukrw"), Token("asset0000"))]

amount = router.simulate_swap_operations(1_000_000, route)
messages = router.execute_swap_operations("addr0000", route, minimum_receive=900_000)
```

`execute_swap_operations` returns one `WasmExecute` per hop addressed to the
router itself, the last one paying out to `to` (or the sender), followed by
a minimum-receive check when `minimum_receive` is given. `Router.execute_swap_operation`
builds the messages for a single hop and accepts only the router's own address
as sender. Pair simulations default to returning the offered amount; pass
`simulate_pair` to `Router` to price them differently.

## Pool

```python
from stablerouter.chain import Asset, Coin, NativeToken, Querier, Token
from stablerouter.pool import StablePool

querier = Querier()
querier.set_balance("pair", [Coin("uusd", 31_500_000_000)])
querier.set_token_balances("asset0000", {"pair": 20_000_000_000})
querier.set_token_balances("liquidity0000", {"pair": 30_000_000_000})

pool = StablePool(
    (NativeToken("uusd"), Token("asset0000")),
    amplification=60,
    fee=4,
    token_code_id=10,
    querier=querier,
)
pool.reply(b"\n\rliquidity0000")

outcome = pool.swap(
    "addr0000",
    [Coin("uusd", 1_500_000_000)],
    Asset(NativeToken("uusd"), 1_500_000_000),
    Asset(Token("asset0000"), 0),
)
print(outcome.messages, outcome.attributes)
```

Every action returns the messages to send and a list of `(key, value)`
attributes. Native deposits and swaps expect the coins to be in the pool's
balance already and in `funds`. Token swaps and withdrawals arrive through
`receive_swap`, `receive_withdraw` and `receive_withdraw_single`, which check
the calling token contract. `query_pool` returns the pool's assets and total
LP supply; `query_pair_info` returns a `PairInfo`.

## Errors

Failures are raised as exceptions deriving from
`stablerouter.errors.ContractError`; `str(error)` and `error.message` give the
message, such as `"must provide operations"` or `"unauthorized"`.

## What this package does not do

It does not talk to a chain, keep state on disk or carry out the messages it
returns: messages are plain data for the caller, and all chain state lives in
a `Querier` filled in by hand. There is no LP token contract; its ledger is
a token balance map in the `Querier`, and the pool does not change it when
it mints or burns shares. There is no command-line program.

## Running the tests

```
pip install ".[test]"
pytest
```