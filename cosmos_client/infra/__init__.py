"""
Infrastructure layer for the Cosmos client

Provides:
- RpcClient: Tendermint JSON-RPC wrapper with retry logic and ABCI queries
- KeyStore / LocalKeyring: Key storage and signing
- SequenceResolver: Account number and sequence resolution
- GasEstimator / Quote: Simulation-based gas and quote-then-commit
- TxBuilder: Transaction assembly, signing and encoding
- Broadcaster: Submission, inclusion wait and result classification
- FaucetFunder: Pre-flight auto-funding
"""

from .rpc import RpcClient, RpcClientConfig
from .address import (
    AddressConfig,
    address_prefix,
    with_address_prefix,
    get_address_config,
    to_bech32,
    from_bech32,
    convert_prefix,
)
from .keyring import Account, KeyStore, LocalKeyring, create_keystore
from .sequence import AccountRetriever, SequenceResolver
from .tx_builder import TxBuilder, decode_tx_raw, tx_hash
from .gas import GasEstimator, Quote
from .broadcaster import Broadcaster, handle_broadcast_result
from .decoder import decode_response
from .faucet import FaucetClient, FaucetFunder, FaucetFunderConfig
from .retry import CorrelationContext, PollOutcome, poll_until

__all__ = [
    "RpcClient",
    "RpcClientConfig",
    "AddressConfig",
    "address_prefix",
    "with_address_prefix",
    "get_address_config",
    "to_bech32",
    "from_bech32",
    "convert_prefix",
    "Account",
    "KeyStore",
    "LocalKeyring",
    "create_keystore",
    "AccountRetriever",
    "SequenceResolver",
    "TxBuilder",
    "decode_tx_raw",
    "tx_hash",
    "GasEstimator",
    "Quote",
    "Broadcaster",
    "handle_broadcast_result",
    "decode_response",
    "FaucetClient",
    "FaucetFunder",
    "FaucetFunderConfig",
    "CorrelationContext",
    "PollOutcome",
    "poll_until",
]
