"""
Test Types Module

Tests for cosmos_client.types package.
"""

import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_coin_parse():
    """Test Coin parsing and formatting"""
    from cosmos_client.types import Coin
    from cosmos_client.errors import ConfigurationError

    print("Testing Coin...")

    coin = Coin.parse("100token")
    assert coin.denom == "token"
    assert coin.amount == 100
    assert str(coin) == "100token"

    ibc = Coin.parse("5ibc/27394FB092D2ECCD56123C74F36E4C1F926001CEADA9CA97EA622B25F41E5EB2")
    assert ibc.amount == 5
    assert ibc.denom.startswith("ibc/")

    with pytest.raises(ConfigurationError):
        Coin.parse("token100")

    with pytest.raises(ValueError):
        Coin(denom="token", amount=-1)

    print("  Coin: PASSED")


def test_dec_coin_parse():
    """Test DecCoin parsing"""
    from cosmos_client.types import DecCoin

    print("Testing DecCoin...")

    price = DecCoin.parse("0.025stake")
    assert price.denom == "stake"
    assert price.amount == Decimal("0.025")

    print("  DecCoin: PASSED")


def test_msg_from_proto():
    """Test Msg wrapping of a protobuf message"""
    from cosmpy.protos.cosmos.bank.v1beta1.tx_pb2 import MsgSend
    from cosmos_client.types import Msg, as_msg

    print("Testing Msg...")

    proto = MsgSend(from_address="cosmos1from", to_address="cosmos1to")
    msg = Msg.from_proto(proto)

    assert msg.type_url == "/cosmos.bank.v1beta1.MsgSend"
    assert MsgSend.FromString(msg.value).to_address == "cosmos1to"
    assert as_msg(msg) is msg
    assert as_msg(proto) == msg

    print("  Msg: PASSED")


def test_tx_factory_unset_fields():
    """Unset account number and sequence are None, and zero is a real value"""
    from cosmos_client.types import TxFactory

    print("Testing TxFactory unset fields...")

    factory = TxFactory(chain_id="test-1")
    assert factory.account_number is None
    assert factory.sequence is None
    assert not factory.is_resolved
    assert factory.missing_for_signing() == "account_number"

    zeroed = factory.with_account_number(0).with_sequence(0)
    assert zeroed.is_resolved
    assert zeroed.missing_for_signing() == "gas"
    assert zeroed.with_gas(1000).missing_for_signing() is None

    # Copies never touch the original
    assert factory.account_number is None

    print("  TxFactory unset fields: PASSED")


def test_tx_factory_unset_as_zero():
    """Test with_unset_as_zero keeps set values"""
    from cosmos_client.types import TxFactory

    factory = TxFactory(chain_id="test-1", sequence=7)
    zeroed = factory.with_unset_as_zero()

    assert zeroed.account_number == 0
    assert zeroed.sequence == 7


def test_tx_factory_fee():
    """Explicit fees win over gas prices"""
    from cosmos_client.types import Coin, DecCoin, TxFactory

    print("Testing TxFactory fee...")

    factory = TxFactory(chain_id="test-1", gas=200001, gas_price=DecCoin.parse("0.025stake"))
    # ceil(200001 * 0.025) == 5001
    assert factory.fee() == (Coin(denom="stake", amount=5001),)

    explicit = factory.with_fees(Coin(denom="token", amount=10))
    assert explicit.fee() == (Coin(denom="token", amount=10),)

    assert TxFactory(chain_id="test-1", gas=1000).fee() == ()

    print("  TxFactory fee: PASSED")


def test_broadcast_response():
    """Test BroadcastResponse status"""
    from cosmos_client.types import BroadcastResponse

    ok = BroadcastResponse(code=0, tx_hash="ABCDEF0123456789ABCDEF")
    assert ok.is_success
    assert "OK" in str(ok)

    failed = BroadcastResponse(code=5, raw_log="insufficient funds")
    assert not failed.is_success
    assert "insufficient funds" in str(failed)


def test_faucet_request_json():
    """Test faucet request body"""
    from cosmos_client.types import FaucetTransferRequest

    print("Testing FaucetTransferRequest...")

    assert FaucetTransferRequest(account_address="cosmos1abc").to_json() == {"address": "cosmos1abc"}

    body = FaucetTransferRequest(account_address="cosmos1abc", denom="token", amount=100).to_json()
    assert body == {"address": "cosmos1abc", "coins": ["100token"]}

    print("  FaucetTransferRequest: PASSED")


def test_faucet_response_json():
    """Test faucet response parsing"""
    from cosmos_client.types import FaucetTransferResponse

    print("Testing FaucetTransferResponse...")

    response = FaucetTransferResponse.from_json(
        {"transfers": [{"coin": "100token", "status": "ok"}]},
        recipient="cosmos1abc",
    )
    assert response.is_success
    assert response.transfers[0].coin == "100token"
    assert response.transfers[0].recipient == "cosmos1abc"

    failed = FaucetTransferResponse.from_json(
        {"transfers": [{"coin": "100token", "status": "error", "error": "max credit"}]}
    )
    assert not failed.is_success

    rejected = FaucetTransferResponse.from_json({"error": "faucet is dry"})
    assert not rejected.is_success
    assert rejected.error == "faucet is dry"

    print("  FaucetTransferResponse: PASSED")


if __name__ == "__main__":
    test_coin_parse()
    test_dec_coin_parse()
    test_msg_from_proto()
    test_tx_factory_unset_fields()
    test_tx_factory_unset_as_zero()
    test_tx_factory_fee()
    test_broadcast_response()
    test_faucet_request_json()
    test_faucet_response_json()
    print("All type tests PASSED")
