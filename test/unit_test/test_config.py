"""
Unit tests for configuration loading and logging setup
"""

import logging
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from cosmos_client.config import (
    Config,
    FaucetConfig,
    LoggingConfig,
    NodeConfig,
    TxConfig,
    setup_logging,
)


class TestEnvironmentConfig(unittest.TestCase):

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            node = NodeConfig()
            tx = TxConfig()
            faucet = FaucetConfig()

        self.assertEqual(node.address, "http://localhost:26657")
        self.assertEqual(node.address_prefix, "cosmos")
        self.assertEqual(tx.gas_limit, 300000)
        self.assertEqual(tx.gas_adjustment, 1.0)
        self.assertEqual(tx.gas_margin, 10000)
        self.assertEqual(tx.sign_mode, "direct")
        self.assertFalse(faucet.enabled)
        self.assertEqual(faucet.poll_interval, 1.0)
        self.assertEqual(faucet.ensure_timeout, 120.0)

    def test_overrides(self):
        env = {
            "COSMOS_NODE_ADDRESS": "http://node:26657",
            "COSMOS_ADDRESS_PREFIX": "osmo",
            "TX_GAS_MARGIN": "5000",
            "TX_GAS_ADJUSTMENT": "1.3",
            "FAUCET_ENABLED": "yes",
            "FAUCET_MIN_AMOUNT": "250",
        }
        with patch.dict(os.environ, env, clear=True):
            config = Config()

        self.assertEqual(config.node.address, "http://node:26657")
        self.assertEqual(config.node.address_prefix, "osmo")
        self.assertEqual(config.tx.gas_margin, 5000)
        self.assertEqual(config.tx.gas_adjustment, 1.3)
        self.assertTrue(config.faucet.enabled)
        self.assertEqual(config.faucet.min_amount, 250)

    def test_invalid_numbers_fall_back(self):
        with patch.dict(os.environ, {"TX_GAS_LIMIT": "lots", "FAUCET_POLL_INTERVAL": "soon"}, clear=True):
            tx = TxConfig()
            faucet = FaucetConfig()

        self.assertEqual(tx.gas_limit, 300000)
        self.assertEqual(faucet.poll_interval, 1.0)


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()

    def tearDown(self):
        logger = logging.getLogger("cosmos_client_test")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
        self.tmp.cleanup()

    def test_file_and_console_handlers(self):
        log_file = os.path.join(self.tmp.name, "nested", "client.log")
        log_config = LoggingConfig(log_file=log_file, log_level="DEBUG", console_output=True)

        logger = setup_logging(log_config, logger_name="cosmos_client_test")

        self.assertEqual(logger.level, logging.DEBUG)
        self.assertEqual(len(logger.handlers), 2)
        self.assertTrue(Path(log_file).exists())

    def test_no_handlers_when_disabled(self):
        log_config = LoggingConfig(log_file="", console_output=False)

        logger = setup_logging(log_config, logger_name="cosmos_client_test")

        self.assertEqual(logger.handlers, [])


if __name__ == "__main__":
    unittest.main()
