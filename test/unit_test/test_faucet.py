"""
Unit tests for faucet auto-funding
"""

import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, Mock, patch

import httpx

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from cosmos_client.errors import ErrorCode, FaucetRequestError, InsufficientBalanceError, RpcError
from cosmos_client.infra.faucet import FaucetClient, FaucetFunder, FaucetFunderConfig
from cosmos_client.types import Coin, FaucetTransferRequest, FaucetTransferResponse, FaucetTransfer

ADDRESS = "cosmos1signer"
FAUCET = "http://localhost:4500"


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def monotonic(self):
        return self.now

    def sleep(self, seconds):
        self.now += seconds


def funded(amount):
    return [Coin("stake", 1000), Coin("token", amount)]


class TestFaucetFunder(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock()
        self.patches = [
            patch("cosmos_client.infra.retry.time.monotonic", side_effect=self.clock.monotonic),
            patch("cosmos_client.infra.retry.time.sleep", side_effect=self.clock.sleep),
        ]
        for p in self.patches:
            p.start()

        self.rpc = MagicMock()
        self.faucet = MagicMock()
        self.faucet.address = FAUCET
        self.faucet.transfer.return_value = FaucetTransferResponse(
            transfers=[FaucetTransfer(recipient=ADDRESS, coin="100token", status="ok")]
        )
        self.config = FaucetFunderConfig(denom="token", min_amount=100, poll_interval=1.0, ensure_timeout=120.0)
        self.funder = FaucetFunder(self.rpc, self.faucet, self.config)

    def tearDown(self):
        for p in self.patches:
            p.stop()

    def test_check_balance(self):
        self.rpc.all_balances.return_value = funded(100)
        self.assertTrue(self.funder.check_balance(ADDRESS))

        self.rpc.all_balances.return_value = funded(99)
        self.assertFalse(self.funder.check_balance(ADDRESS))

        self.rpc.all_balances.return_value = [Coin("stake", 10 ** 9)]
        self.assertFalse(self.funder.check_balance(ADDRESS))

    def test_already_funded_skips_faucet(self):
        self.rpc.all_balances.return_value = funded(500)

        self.funder.ensure_funded(ADDRESS)

        self.faucet.transfer.assert_not_called()

    def test_single_request_then_poll(self):
        """One faucet request, then checks until the balance arrives"""
        self.rpc.all_balances.side_effect = [funded(0), funded(0), funded(0), funded(0), funded(100)]

        self.funder.ensure_funded(ADDRESS)

        self.assertEqual(self.faucet.transfer.call_count, 1)
        request = self.faucet.transfer.call_args.args[0]
        self.assertEqual(request.account_address, ADDRESS)
        self.assertEqual(self.rpc.all_balances.call_count, 5)
        self.assertEqual(self.clock.now, 3.0)

    def test_funding_timeout(self):
        self.rpc.all_balances.return_value = funded(0)

        with self.assertRaises(InsufficientBalanceError) as ctx:
            self.funder.ensure_funded(ADDRESS)

        self.assertEqual(ctx.exception.code, ErrorCode.FUNDING_TIMEOUT)
        self.assertEqual(self.faucet.transfer.call_count, 1)
        self.assertLessEqual(self.clock.now, 121.0)

    def test_faucet_rejection_not_retried(self):
        self.rpc.all_balances.return_value = funded(0)
        self.faucet.transfer.return_value = FaucetTransferResponse(error="faucet is dry")

        with self.assertRaises(FaucetRequestError) as ctx:
            self.funder.ensure_funded(ADDRESS)

        self.assertEqual(ctx.exception.code, ErrorCode.FAUCET_REJECTED)
        self.assertIn("faucet is dry", str(ctx.exception))
        self.assertEqual(self.faucet.transfer.call_count, 1)
        self.assertEqual(self.rpc.all_balances.call_count, 1)

    def test_transfer_error(self):
        self.rpc.all_balances.return_value = funded(0)
        self.faucet.transfer.return_value = FaucetTransferResponse(
            transfers=[FaucetTransfer(recipient=ADDRESS, coin="100token", status="error", error="max credit")]
        )

        with self.assertRaises(FaucetRequestError) as ctx:
            self.funder.ensure_funded(ADDRESS)

        self.assertEqual(ctx.exception.code, ErrorCode.FAUCET_TRANSFER_FAILED)
        self.assertIn("max credit", str(ctx.exception))

    def test_transient_poll_errors_are_retried(self):
        self.rpc.all_balances.side_effect = [
            funded(0),
            RpcError.connection_failed("http://localhost:26657"),
            funded(100),
        ]

        self.funder.ensure_funded(ADDRESS)

        self.assertEqual(self.rpc.all_balances.call_count, 3)

    def test_config_defaults(self):
        config = FaucetFunderConfig()

        self.assertTrue(config.denom)
        self.assertGreater(config.ensure_timeout, 0)
        self.assertGreater(config.poll_interval, 0)


class TestFaucetClient(unittest.TestCase):

    def setUp(self):
        self.client = FaucetClient(FAUCET, timeout=5)

    def tearDown(self):
        self.client.close()

    def test_transfer(self):
        response = Mock()
        response.is_error = False
        response.json.return_value = {"transfers": [{"coin": "100token", "status": "ok"}]}

        with patch.object(httpx.Client, "post", return_value=response) as post:
            result = self.client.transfer(FaucetTransferRequest(account_address=ADDRESS))

        self.assertTrue(result.is_success)
        self.assertEqual(post.call_args.args[0], FAUCET)
        self.assertEqual(post.call_args.kwargs["json"], {"address": ADDRESS})

    def test_error_body_on_failure_status(self):
        response = Mock()
        response.is_error = True
        response.json.return_value = {"error": "account has reached maximum credit allowed"}

        with patch.object(httpx.Client, "post", return_value=response):
            result = self.client.transfer(FaucetTransferRequest(account_address=ADDRESS))

        self.assertFalse(result.is_success)
        self.assertIn("maximum credit", result.error)

    def test_unreachable(self):
        with patch.object(httpx.Client, "post", side_effect=httpx.ConnectError("refused")):
            with self.assertRaises(FaucetRequestError) as ctx:
                self.client.transfer(FaucetTransferRequest(account_address=ADDRESS))

        self.assertEqual(ctx.exception.code, ErrorCode.FAUCET_UNAVAILABLE)


if __name__ == "__main__":
    unittest.main()
