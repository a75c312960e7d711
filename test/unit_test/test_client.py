"""
Unit tests for CosmosClient pipeline wiring
"""

import base64
import os
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from cosmpy.crypto.keypairs import PrivateKey
from cosmpy.protos.cosmos.bank.v1beta1.tx_pb2 import MsgSend
from cosmpy.protos.cosmos.base.abci.v1beta1.abci_pb2 import MsgData, TxMsgData
from cosmpy.protos.cosmos.gov.v1beta1.tx_pb2 import MsgSubmitProposalResponse

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from cosmos_client import CosmosClient
from cosmos_client.errors import AccountNotFoundError, BroadcastRejectedError, ErrorCode, TransactionError
from cosmos_client.infra import address as address_module
from cosmos_client.infra.keyring import LocalKeyring
from cosmos_client.infra.tx_builder import decode_tx_raw, tx_hash
from cosmos_client.types import Coin, TxFactory

MSG = MsgSend(from_address="cosmos1from", to_address="cosmos1to", amount=[])


def make_rpc(gas_used=50000, deliver_code=0, deliver_data=b""):
    rpc = MagicMock()
    rpc.endpoint = "http://localhost:26657"
    rpc.chain_id.return_value = "test-1"
    rpc.account.return_value = MagicMock(account_number=12, sequence=4)
    rpc.simulate.return_value = gas_used

    def broadcast(tx_bytes):
        return {"code": 0, "log": "", "hash": tx_hash(tx_bytes)}

    def lookup(hash_):
        return {
            "hash": hash_,
            "height": "10",
            "tx_result": {
                "code": deliver_code,
                "log": "out of gas" if deliver_code else "",
                "data": base64.b64encode(deliver_data).decode("ascii") if deliver_data else None,
            },
        }

    rpc.broadcast_tx_sync.side_effect = broadcast
    rpc.tx.side_effect = lookup
    return rpc


class ClientTestCase(unittest.TestCase):

    def setUp(self):
        self.sleep_patch = patch("cosmos_client.infra.retry.time.sleep")
        self.sleep_patch.start()
        self.keyring = LocalKeyring(backend="memory")
        self.keyring.add("alice", PrivateKey(bytes.fromhex("02" * 32)))

    def tearDown(self):
        self.sleep_patch.stop()

    def make_client(self, rpc=None, **kwargs):
        kwargs.setdefault("use_faucet", False)
        return CosmosClient(rpc=rpc or make_rpc(), keystore=self.keyring, address_prefix="cosmos", **kwargs)


class TestConstruction(ClientTestCase):

    def test_chain_id_and_home(self):
        client = self.make_client()

        self.assertEqual(client.chain_id, "test-1")
        self.assertEqual(client.factory.chain_id, "test-1")
        self.assertIsNone(client.factory.sequence)
        if not os.getenv("COSMOS_HOME"):
            self.assertTrue(client.home.endswith(".test-1"))

    def test_address_and_balances(self):
        rpc = make_rpc()
        rpc.all_balances.return_value = [Coin("token", 5)]
        client = self.make_client(rpc)

        address = client.address("alice")

        self.assertTrue(address.startswith("cosmos1"))
        self.assertEqual(client.balances("alice"), [Coin("token", 5)])
        rpc.all_balances.assert_called_once_with(address)

    def test_context_manager_closes_rpc(self):
        rpc = make_rpc()
        with self.make_client(rpc):
            pass
        rpc.close.assert_called_once()


class TestBroadcast(ClientTestCase):

    def test_quote_then_commit(self):
        rpc = make_rpc(gas_used=50000)
        client = self.make_client(rpc)

        quote = client.broadcast_tx_with_provision("alice", MSG)

        self.assertEqual(quote.gas, 60000)
        self.assertEqual(quote.factory.account_number, 12)
        self.assertEqual(quote.factory.sequence, 4)
        rpc.broadcast_tx_sync.assert_not_called()

        response = quote.commit()

        self.assertTrue(response.is_success)
        _, auth_info, _ = decode_tx_raw(rpc.broadcast_tx_sync.call_args.args[0])
        self.assertEqual(auth_info.fee.gas_limit, 60000)
        self.assertEqual(auth_info.signer_infos[0].sequence, 4)

        # The client's default factory is never mutated
        self.assertIsNone(client.factory.sequence)

    def test_broadcast_and_decode(self):
        payload = MsgSubmitProposalResponse(proposal_id=9).SerializeToString()
        data = TxMsgData(data=[MsgData(msg_type="/cosmos.gov.v1beta1.MsgSubmitProposal", data=payload)])
        client = self.make_client(make_rpc(deliver_data=data.SerializeToString()))

        response = client.broadcast_tx("alice", MSG)

        self.assertEqual(response.decode(MsgSubmitProposalResponse).proposal_id, 9)

    def test_rejected_delivery(self):
        client = self.make_client(make_rpc(deliver_code=11))

        with self.assertRaises(BroadcastRejectedError) as ctx:
            client.broadcast_tx("alice", MSG)

        self.assertIn("out of gas", str(ctx.exception))

    def test_unknown_account(self):
        rpc = make_rpc()
        rpc.account.side_effect = AccountNotFoundError.not_found("cosmos1x")
        client = self.make_client(rpc)

        with self.assertRaises(AccountNotFoundError):
            client.broadcast_tx("alice", MSG)
        rpc.simulate.assert_not_called()

    def test_create_account_skips_resolution(self):
        rpc = make_rpc()
        client = self.make_client(rpc)

        quote = client.broadcast_tx_with_provision_create_account("alice", MSG)

        self.assertEqual(quote.factory.account_number, 0)
        self.assertEqual(quote.factory.sequence, 0)
        rpc.account.assert_not_called()

    def test_caller_factory_values_kept(self):
        rpc = make_rpc()
        client = self.make_client(rpc, tx_factory=TxFactory(chain_id="test-1", account_number=3, sequence=0))

        quote = client.broadcast_tx_with_provision("alice", MSG)

        self.assertEqual((quote.factory.account_number, quote.factory.sequence), (3, 0))

    def test_quote_commits_once(self):
        quote = self.make_client().broadcast_tx_with_provision("alice", MSG)
        quote.commit()

        with self.assertRaises(TransactionError) as ctx:
            quote.commit()

        self.assertEqual(ctx.exception.code, ErrorCode.TX_ALREADY_COMMITTED)


class TestFaucetOrdering(ClientTestCase):

    def test_faucet_runs_before_quote_outside_lock(self):
        rpc = make_rpc()
        client = self.make_client(rpc)
        calls = []

        def ensure_funded(address):
            calls.append(("faucet", address_module._address_lock.locked()))

        def account(address):
            calls.append(("account", address_module._address_lock.locked()))
            return MagicMock(account_number=1, sequence=1)

        client._faucet = MagicMock()
        client._faucet.ensure_funded.side_effect = ensure_funded
        rpc.account.side_effect = account

        client.broadcast_tx_with_provision("alice", MSG)

        self.assertEqual(calls[0], ("faucet", False))
        self.assertEqual(calls[1], ("account", True))
        client._faucet.ensure_funded.assert_called_once_with(client.address("alice"))


if __name__ == "__main__":
    unittest.main()
