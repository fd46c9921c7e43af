from fractions import Fraction

import pytest

from stablerouter.chain import Asset, BankSend, Coin, NativeToken, Querier, Token, WasmExecute
from stablerouter.errors import (
    AssetMismatch,
    ContractError,
    MaxSlippageAssertion,
    Unauthorized,
)
from stablerouter.pool import StablePool, amount_of, parse_instantiate_response

CONTRACT = "cosmos2contract"
REPLY_DATA = bytes([10, 13]) + b"liquidity0000"
UUSD = NativeToken("uusd")
ASSET = Token("asset0000")


def make_pool(querier, asset_infos=(UUSD, ASSET)):
    pool = StablePool(
        asset_infos=asset_infos,
        amplification=60,
        fee=4,
        token_code_id=10,
        querier=querier,
        contract_address=CONTRACT,
    )
    pool.reply(REPLY_DATA)
    return pool


def test_proper_initialization():
    pool = StablePool((UUSD, ASSET), 60, 4, 10, Querier(), CONTRACT)
    assert pool.instantiate_msg["code_id"] == 10
    assert pool.instantiate_msg["msg"]["name"] == "terraswap liquidity token"
    assert pool.instantiate_msg["msg"]["symbol"] == "uLP"
    assert pool.instantiate_msg["msg"]["decimals"] == 6
    assert pool.instantiate_msg["msg"]["mint"] == {"minter": CONTRACT, "cap": None}
    assert pool.instantiate_msg["reply_id"] == 1

    outcome = pool.reply(REPLY_DATA)
    assert outcome.attributes == [("liquidity_token_addr", "liquidity0000")]
    info = pool.query_pair_info()
    assert info.liquidity_token == "liquidity0000"
    assert info.asset_infos == (UUSD, ASSET)


def test_parse_instantiate_response():
    assert parse_instantiate_response(REPLY_DATA) == "liquidity0000"
    with_data = REPLY_DATA + bytes([18, 2, 1, 2])
    assert parse_instantiate_response(with_data) == "liquidity0000"


def test_parse_instantiate_response_rejects_garbage():
    with pytest.raises(ContractError):
        parse_instantiate_response(bytes([10, 20, 1]))


def test_provide_liquidity():
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", 100)])
    querier.set_token_balances("liquidity0000", {CONTRACT: 0})
    querier.set_token_balances("asset0000", {})
    pool = make_pool(querier, (ASSET, UUSD))

    outcome = pool.provide_liquidity(
        "addr0000",
        [Coin("uusd", 100)],
        [Asset(ASSET, 100), Asset(UUSD, 100)],
        0,
    )
    assert outcome.messages[0] == WasmExecute(
        "asset0000",
        {"transfer_from": {"owner": "addr0000", "recipient": CONTRACT, "amount": 100}},
    )
    assert outcome.messages[1] == WasmExecute(
        "liquidity0000", {"mint": {"recipient": "addr0000", "amount": 200}}
    )


def test_provide_liquidity_balance_mismatch():
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", 200)])
    querier.set_token_balances("liquidity0000", {CONTRACT: 100})
    querier.set_token_balances("asset0000", {CONTRACT: 100})
    pool = make_pool(querier, (ASSET, UUSD))
    with pytest.raises(ContractError) as err:
        pool.provide_liquidity(
            "addr0000",
            [Coin("uusd", 100)],
            [Asset(ASSET, 100), Asset(UUSD, 50)],
        )
    assert err.value.message == (
        "Native token balance mismatch between the argument and the transferred"
    )


@pytest.mark.parametrize(
    "native_balance,token_deposit,native_deposit",
    [(200, 98, 100), (198, 100, 98)],
)
def test_provide_liquidity_slippage(native_balance, token_deposit, native_deposit):
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", native_balance)])
    querier.set_token_balances("liquidity0000", {CONTRACT: 100})
    querier.set_token_balances("asset0000", {CONTRACT: 100})
    pool = make_pool(querier, (ASSET, UUSD))
    with pytest.raises(MaxSlippageAssertion):
        pool.provide_liquidity(
            "addr0001",
            [Coin("uusd", native_deposit)],
            [Asset(ASSET, token_deposit), Asset(UUSD, native_deposit)],
            200,
        )


@pytest.mark.parametrize(
    "native_balance,token_deposit,native_deposit",
    [(200, 99, 100), (199, 100, 99)],
)
def test_provide_liquidity_succeeds(native_balance, token_deposit, native_deposit):
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", native_balance)])
    querier.set_token_balances("liquidity0000", {CONTRACT: 100})
    querier.set_token_balances("asset0000", {CONTRACT: 100})
    pool = make_pool(querier, (ASSET, UUSD))
    outcome = pool.provide_liquidity(
        "addr0001",
        [Coin("uusd", native_deposit)],
        [Asset(ASSET, token_deposit), Asset(UUSD, native_deposit)],
        0,
    )
    assert len(outcome.messages) == 2
    mint = outcome.messages[1].msg["mint"]
    assert mint["recipient"] == "addr0001"
    assert 0 < mint["amount"] < 200
    assert outcome.attributes[0] == ("action", "provide_liquidity")


def test_provide_liquidity_wrong_asset_order():
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", 100)])
    querier.set_token_balances("liquidity0000", {CONTRACT: 0})
    querier.set_token_balances("asset0000", {})
    pool = make_pool(querier, (ASSET, UUSD))
    with pytest.raises(AssetMismatch):
        pool.provide_liquidity(
            "addr0000",
            [Coin("uusd", 100)],
            [Asset(UUSD, 100), Asset(ASSET, 100)],
        )


def _withdraw_querier():
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", 100)])
    querier.set_tax(0, {"uusd": 1000000})
    querier.set_token_balances("liquidity0000", {"addr0000": 100})
    querier.set_token_balances("asset0000", {CONTRACT: 100})
    return querier


def test_withdraw_liquidity():
    pool = make_pool(_withdraw_querier())
    outcome = pool.receive_withdraw("liquidity0000", "addr0000", 100)
    assert outcome.messages[0] == BankSend("addr0000", (Coin("uusd", 100),))
    assert outcome.messages[1] == WasmExecute(
        "asset0000", {"transfer": {"recipient": "addr0000", "amount": 100}}
    )
    assert outcome.messages[2] == WasmExecute(
        "liquidity0000", {"burn": {"amount": 100}}
    )
    assert outcome.attributes[2] == ("withdrawn_share", "100")


def test_withdraw_liquidity_only_from_lp_token():
    pool = make_pool(_withdraw_querier())
    with pytest.raises(Unauthorized):
        pool.receive_withdraw("asset0000", "addr0000", 100)


def test_withdraw_single_liquidity():
    pool = make_pool(_withdraw_querier())
    outcome = pool.receive_withdraw_single(
        "liquidity0000", "addr0000", 100, Asset(UUSD, 0), 0
    )
    assert outcome.messages[0] == BankSend("liquidity0000", (Coin("uusd", 99),))
    assert outcome.messages[1] == WasmExecute(
        "liquidity0000", {"burn": {"amount": 100}}
    )
    assert outcome.attributes[2] == ("withdrawn_share", "100")
    assert outcome.attributes[3] == ("refund_asset", "99uusd")


def test_withdraw_single_liquidity_below_minimum():
    pool = make_pool(_withdraw_querier())
    with pytest.raises(MaxSlippageAssertion):
        pool.receive_withdraw_single(
            "liquidity0000", "addr0000", 100, Asset(UUSD, 0), 99
        )


def test_withdraw_single_liquidity_unknown_asset():
    pool = make_pool(_withdraw_querier())
    with pytest.raises(AssetMismatch):
        pool.withdraw_single_liquidity("addr0000", Asset(NativeToken("ukrw"), 0), 100)


def test_try_native_to_token():
    offer_amount = 1500000000
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", 30000000000 + offer_amount)])
    querier.set_tax(0, {"uusd": 1000000})
    querier.set_token_balances("liquidity0000", {CONTRACT: 30000000000})
    querier.set_token_balances("asset0000", {CONTRACT: 20000000000})
    pool = make_pool(querier)

    outcome = pool.swap(
        "addr0000",
        [Coin("uusd", offer_amount)],
        Asset(UUSD, offer_amount),
        Asset(ASSET, 0),
        0,
    )
    expected = 1486872698
    assert outcome.attributes == [
        ("action", "swap"),
        ("sender", "addr0000"),
        ("receiver", "addr0000"),
        ("offer_asset", "uusd"),
        ("ask_asset", "asset0000"),
        ("offer_amount", str(offer_amount)),
        ("return_amount", str(expected)),
    ]
    assert outcome.messages[0] == WasmExecute(
        "asset0000", {"transfer": {"recipient": "addr0000", "amount": expected}}
    )


def test_try_token_to_native():
    offer_amount = 1500000000
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", 20000000000)])
    querier.set_tax(Fraction(1, 100), {"uusd": 1000000})
    querier.set_token_balances("liquidity0000", {CONTRACT: 20000000000})
    querier.set_token_balances("asset0000", {CONTRACT: 30000000000 + offer_amount})
    pool = make_pool(querier)

    with pytest.raises(Unauthorized):
        pool.swap("addr0000", [], Asset(ASSET, offer_amount), Asset(UUSD, 0), 0)

    outcome = pool.receive_swap("asset0000", "addr0000", offer_amount, Asset(UUSD, 0), 0)
    expected = 1486872698
    assert outcome.attributes == [
        ("action", "swap"),
        ("sender", "addr0000"),
        ("receiver", "addr0000"),
        ("offer_asset", "asset0000"),
        ("ask_asset", "uusd"),
        ("offer_amount", str(offer_amount)),
        ("return_amount", str(expected)),
    ]
    assert outcome.messages[0] == BankSend(
        "addr0000", (Coin("uusd", expected - 1000000),)
    )

    with pytest.raises(Unauthorized):
        pool.receive_swap("liquidity0000", "addr0000", offer_amount, Asset(UUSD, 0), 0)


def test_query_pool():
    querier = Querier()
    querier.set_balance(CONTRACT, [Coin("uusd", 222)])
    querier.set_token_balances("asset0000", {CONTRACT: 333})
    querier.set_token_balances("liquidity0000", {CONTRACT: 111})
    pool = make_pool(querier)

    state = pool.query_pool()
    assert state.assets == [Asset(UUSD, 222), Asset(ASSET, 333)]
    assert state.total_share == 111


def test_amount_of():
    coins = [Coin("uusd", 5), Coin("uluna", 7)]
    assert amount_of(coins, "uluna") == 7
    assert amount_of(coins, "ukrw") == 0