"""
Transaction builder and signer

Provides utilities for:
- Building unsigned transactions from a factory and messages
- Signing with one named key through the key store (SIGN_MODE_DIRECT)
- Encoding signed transactions to TxRaw bytes
- Building signature-less transactions for gas simulation
"""

from __future__ import annotations

import hashlib
import logging
from typing import Iterable, List, Sequence, Tuple

from google.protobuf.any_pb2 import Any

from cosmpy.protos.cosmos.base.v1beta1.coin_pb2 import Coin as ProtoCoin
from cosmpy.protos.cosmos.crypto.secp256k1.keys_pb2 import PubKey
from cosmpy.protos.cosmos.tx.signing.v1beta1.signing_pb2 import SignMode
from cosmpy.protos.cosmos.tx.v1beta1.tx_pb2 import (
    AuthInfo,
    Fee,
    ModeInfo,
    SignDoc,
    SignerInfo,
    TxBody,
    TxRaw,
)

from .keyring import KeyStore
from ..types import Coin, Msg, TxFactory, UnsignedTx, SignedTx, as_msg
from ..errors import ConfigurationError, SignerError, TransactionError

logger = logging.getLogger(__name__)

SECP256K1_PUBKEY_TYPE_URL = "/cosmos.crypto.secp256k1.PubKey"

# "unspecified" resolves to the default mode of the SDK tx config
SIGN_MODES = {
    "direct": SignMode.SIGN_MODE_DIRECT,
    "unspecified": SignMode.SIGN_MODE_DIRECT,
}


def resolve_sign_mode(sign_mode: str) -> str:
    """Normalize a sign mode name, rejecting unsupported modes"""
    name = (sign_mode or "unspecified").lower()
    if name not in SIGN_MODES:
        raise ConfigurationError.invalid(
            "sign_mode",
            f"Unsupported sign mode {sign_mode!r}. Supported: {', '.join(SIGN_MODES)}",
        )
    return "direct"


def tx_hash(tx_bytes: bytes) -> str:
    """Tendermint transaction hash (upper-case hex sha256)"""
    return hashlib.sha256(tx_bytes).hexdigest().upper()


def _pack(msg: Msg) -> Any:
    return Any(type_url=msg.type_url, value=msg.value)


def _fee(coins: Iterable[Coin], gas: int) -> Fee:
    return Fee(
        amount=[ProtoCoin(denom=c.denom, amount=str(c.amount)) for c in coins],
        gas_limit=gas,
    )


def _auth_info(public_key: bytes, sequence: int, fee: Sequence[Coin], gas: int) -> AuthInfo:
    signer_info = SignerInfo(
        public_key=Any(
            type_url=SECP256K1_PUBKEY_TYPE_URL,
            value=PubKey(key=public_key).SerializeToString(),
        ),
        mode_info=ModeInfo(single=ModeInfo.Single(mode=SignMode.SIGN_MODE_DIRECT)),
        sequence=sequence,
    )
    return AuthInfo(signer_infos=[signer_info], fee=_fee(fee, gas))


class TxBuilder:
    """
    Transaction builder and signer

    Handles:
    - Assembling the body (messages, memo) and fee
    - Assembling the SignDoc (body, auth info, chain id, account number)
    - Delegating the signature to the key store
    - TxRaw encoding

    Usage:
        builder = TxBuilder(keystore)

        unsigned = builder.build(factory, msgs)
        signed = builder.sign(factory, "alice", unsigned)
        tx_bytes = builder.encode(signed)
    """

    def __init__(self, keystore: KeyStore):
        """
        Initialize transaction builder

        Args:
            keystore: Key storage collaborator used for signing
        """
        self._keystore = keystore

    def build(self, factory: TxFactory, msgs: Sequence) -> UnsignedTx:
        """
        Build unsigned transaction

        Args:
            factory: Resolved factory (account number, sequence and gas set)
            msgs: Messages (Msg or protobuf messages), in order

        Returns:
            UnsignedTx
        """
        missing = factory.missing_for_signing()
        if missing:
            raise TransactionError.not_ready(missing)
        resolve_sign_mode(factory.sign_mode)

        body = TxBody(messages=[_pack(as_msg(m)) for m in msgs], memo=factory.memo)
        return UnsignedTx(
            body_bytes=body.SerializeToString(),
            chain_id=factory.chain_id,
            account_number=factory.account_number,
            sequence=factory.sequence,
            gas=factory.gas,
            fee=factory.fee(),
        )

    def sign(self, factory: TxFactory, signer_name: str, unsigned: UnsignedTx) -> SignedTx:
        """
        Sign an unsigned transaction with one named key

        Args:
            factory: Factory the transaction was built from (sign mode)
            signer_name: Key name in the key store
            unsigned: Transaction to sign

        Returns:
            SignedTx
        """
        sign_mode = resolve_sign_mode(factory.sign_mode)
        public_key = self._keystore.public_key(signer_name)
        signer_address = self._keystore.address(signer_name)

        auth_info_bytes = _auth_info(
            public_key, unsigned.sequence, unsigned.fee, unsigned.gas
        ).SerializeToString()

        sign_doc = SignDoc(
            body_bytes=unsigned.body_bytes,
            auth_info_bytes=auth_info_bytes,
            chain_id=unsigned.chain_id,
            account_number=unsigned.account_number,
        )
        signature = self._keystore.sign(signer_name, sign_doc.SerializeToString(), sign_mode)
        if not signature:
            raise SignerError.failed(f"key store returned an empty signature for {signer_name!r}")

        logger.debug(
            f"Signed tx for {signer_name} ({signer_address}): "
            f"account_number={unsigned.account_number} sequence={unsigned.sequence} gas={unsigned.gas}"
        )

        return SignedTx(
            body_bytes=unsigned.body_bytes,
            auth_info_bytes=auth_info_bytes,
            signature=signature,
            signer_address=signer_address,
            gas=unsigned.gas,
            sequence=unsigned.sequence,
            fee=unsigned.fee,
        )

    @staticmethod
    def encode(signed: SignedTx) -> bytes:
        """Encode signed transaction as TxRaw bytes"""
        return TxRaw(
            body_bytes=signed.body_bytes,
            auth_info_bytes=signed.auth_info_bytes,
            signatures=[signed.signature],
        ).SerializeToString()

    @staticmethod
    def build_simulation(factory: TxFactory, msgs: Sequence, public_key: bytes) -> bytes:
        """
        Build a transaction for gas simulation

        Carries the signer's public key and sequence with an empty signature;
        the node skips signature verification in simulate mode.
        """
        body = TxBody(messages=[_pack(as_msg(m)) for m in msgs], memo=factory.memo)
        auth_info = _auth_info(
            public_key,
            factory.sequence or 0,
            factory.fee(),
            factory.gas or 0,
        )
        return TxRaw(
            body_bytes=body.SerializeToString(),
            auth_info_bytes=auth_info.SerializeToString(),
            signatures=[b""],
        ).SerializeToString()


def decode_tx_raw(tx_bytes: bytes) -> Tuple[TxBody, AuthInfo, List[bytes]]:
    """Split encoded TxRaw bytes into body, auth info and signatures"""
    raw = TxRaw.FromString(tx_bytes)
    return (
        TxBody.FromString(raw.body_bytes),
        AuthInfo.FromString(raw.auth_info_bytes),
        list(raw.signatures),
    )
