"""
Process-wide address format configuration

Address derivation takes the bech32 prefix as an explicit argument
everywhere in this package. The process-wide AddressConfig remains for key
stores that read the prefix from a global; every read of it by such a key
store must happen inside address_prefix(), which serializes the window from
prefix installation through transaction signing.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator, Tuple, TypeVar

import bech32

from ..config import config as global_config
from ..errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class AddressConfig:
    """Bech32 prefixes used to encode account addresses and public keys"""
    account_prefix: str
    account_pubkey_prefix: str

    def set_account_prefix(self, prefix: str) -> None:
        self.account_prefix = prefix
        self.account_pubkey_prefix = f"{prefix}pub"


# Set once at import, mutated only under _address_lock, never torn down
address_config = AddressConfig(
    account_prefix=global_config.node.address_prefix,
    account_pubkey_prefix=f"{global_config.node.address_prefix}pub",
)

_address_lock = threading.Lock()


def get_address_config() -> AddressConfig:
    """Get the process-wide address configuration"""
    return address_config


@contextmanager
def address_prefix(prefix: str) -> Iterator[AddressConfig]:
    """
    Hold the process-wide address lock with prefix installed

    Concurrent pipeline invocations serialize here, whatever signer they
    use. The previous prefix is restored on exit.

    Usage:
        with address_prefix("osmo"):
            address = keystore.address("alice")
    """
    if not prefix:
        raise ConfigurationError.missing("address prefix")

    with _address_lock:
        previous = address_config.account_prefix
        address_config.set_account_prefix(prefix)
        logger.debug(f"Address prefix set to {prefix!r}")
        try:
            yield address_config
        finally:
            address_config.set_account_prefix(previous)


def with_address_prefix(prefix: str, fn: Callable[[], T]) -> T:
    """Run fn with prefix installed and the address lock held"""
    with address_prefix(prefix):
        return fn()


def to_bech32(prefix: str, raw: bytes) -> str:
    """Encode raw address bytes under prefix"""
    data = bech32.convertbits(raw, 8, 5)
    if data is None:
        raise ConfigurationError.invalid("address", "cannot convert address bytes")
    return bech32.bech32_encode(prefix, data)


def from_bech32(address: str) -> Tuple[str, bytes]:
    """Decode a bech32 address into (prefix, raw bytes)"""
    prefix, data = bech32.bech32_decode(address)
    if prefix is None or data is None:
        raise ConfigurationError.invalid("address", f"not a bech32 address: {address!r}")
    raw = bech32.convertbits(data, 5, 8, False)
    if raw is None:
        raise ConfigurationError.invalid("address", f"invalid bech32 payload: {address!r}")
    return prefix, bytes(raw)


def convert_prefix(address: str, prefix: str) -> str:
    """Re-encode an address under another prefix"""
    _, raw = from_bech32(address)
    return to_bech32(prefix, raw)
