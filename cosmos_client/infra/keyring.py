"""
Key storage abstractions

Provides the key-storage boundary used for address derivation and signing,
plus a local keyring backed by memory or by unencrypted files (the "test"
backend). Cryptographic primitives come from cosmpy.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable

from cosmpy.crypto.address import Address
from cosmpy.crypto.keypairs import PrivateKey, PublicKey

from .address import get_address_config
from ..errors import SignerError, ConfigurationError
from ..config import config as global_config

logger = logging.getLogger(__name__)

SUPPORTED_BACKENDS = ("memory", "test")


@dataclass(frozen=True)
class Account:
    """
    Named key known to a key store

    Attributes:
        name: Local key name
        public_key: Compressed secp256k1 public key (33 bytes)
    """
    name: str
    public_key: bytes

    def address(self, prefix: str) -> str:
        """Bech32 account address under prefix"""
        return str(Address(PublicKey(self.public_key), prefix))


@runtime_checkable
class KeyStore(Protocol):
    """
    Protocol for key storage collaborators

    Implementations must provide:
    - get(): Look up an account by name
    - address(): Derive the account address; with prefix=None the
      process-wide AddressConfig prefix is used
    - public_key(): Public key bytes of an account
    - sign(): Sign bytes with the named key in the given sign mode
    """

    def get(self, name: str) -> Account:
        ...

    def address(self, name: str, prefix: Optional[str] = None) -> str:
        ...

    def public_key(self, name: str) -> bytes:
        ...

    def sign(self, name: str, data: bytes, sign_mode: str) -> bytes:
        """
        Sign data

        Args:
            name: Key name
            data: Bytes to sign (a serialized SignDoc for direct mode)
            sign_mode: Sign mode name ("direct")

        Returns:
            64-byte compact secp256k1 signature
        """
        ...


class LocalKeyring:
    """
    Local keyring using cosmpy secp256k1 keys

    Backends:
    - memory: keys live only in this process
    - test: unencrypted JSON files under <home>/keyring-test/<service_name>/

    Usage:
        keyring = LocalKeyring(backend="test", home="~/.mychain")
        keyring.add("alice")
        address = keyring.address("alice", "cosmos")
    """

    def __init__(
        self,
        backend: str = "memory",
        home: Optional[str] = None,
        service_name: str = "cosmos",
    ):
        """
        Initialize keyring

        Args:
            backend: "memory" or "test"
            home: Data directory (required for the test backend)
            service_name: Namespace for stored keys
        """
        if backend not in SUPPORTED_BACKENDS:
            raise ConfigurationError.invalid(
                "keyring_backend",
                f"Unsupported backend {backend!r}. Supported: {', '.join(SUPPORTED_BACKENDS)}",
            )
        if backend == "test" and not home:
            raise ConfigurationError.missing("keyring home directory")

        self._backend = backend
        self._service_name = service_name
        self._dir: Optional[Path] = None
        if backend == "test":
            self._dir = Path(home).expanduser() / f"keyring-{backend}" / service_name

        self._keys: Dict[str, PrivateKey] = {}
        self._lock = threading.Lock()

    @property
    def backend(self) -> str:
        return self._backend

    def _key_path(self, name: str) -> Path:
        # Names map to files directly under the service directory
        if not name or name in (".", "..") or "/" in name or "\\" in name:
            raise SignerError.invalid_key_name(name)
        return self._dir / f"{name}.json"

    def _load(self, name: str) -> PrivateKey:
        with self._lock:
            key = self._keys.get(name)
            if key is not None:
                return key

            if self._dir is not None:
                path = self._key_path(name)
                if path.is_file():
                    with open(path, "r", encoding="utf-8") as f:
                        data = json.load(f)
                    key = PrivateKey(data["private_key"])
                    self._keys[name] = key
                    return key

        raise SignerError.key_not_found(name)

    def _store(self, name: str, key: PrivateKey) -> None:
        with self._lock:
            if self._dir is not None:
                path = self._key_path(name)
                self._dir.mkdir(parents=True, exist_ok=True)
                with open(path, "w", encoding="utf-8") as f:
                    json.dump({"name": name, "private_key": key.private_key}, f)
                os.chmod(path, 0o600)
            self._keys[name] = key

    def add(self, name: str, private_key: Optional[PrivateKey] = None) -> Account:
        """Add a key (generated if not provided)"""
        key = private_key or PrivateKey()
        self._store(name, key)
        logger.info(f"Added key {name!r} to {self._backend} keyring")
        return Account(name=name, public_key=key.public_key.public_key_bytes)

    def import_key(self, name: str, private_key_b64: str) -> Account:
        """Import a base64 encoded secp256k1 private key"""
        return self.add(name, PrivateKey(private_key_b64))

    def delete(self, name: str) -> None:
        """Remove a key"""
        self._load(name)
        with self._lock:
            self._keys.pop(name, None)
            if self._dir is not None:
                path = self._key_path(name)
                if path.exists():
                    path.unlink()

    def list(self) -> List[Account]:
        """List known accounts"""
        with self._lock:
            names = set(self._keys)
        if self._dir is not None and self._dir.is_dir():
            names.update(p.stem for p in self._dir.glob("*.json"))
        return [self.get(name) for name in sorted(names)]

    def get(self, name: str) -> Account:
        key = self._load(name)
        return Account(name=name, public_key=key.public_key.public_key_bytes)

    def address(self, name: str, prefix: Optional[str] = None) -> str:
        if prefix is None:
            prefix = get_address_config().account_prefix
        return self.get(name).address(prefix)

    def public_key(self, name: str) -> bytes:
        return self.get(name).public_key

    def sign(self, name: str, data: bytes, sign_mode: str) -> bytes:
        if sign_mode != "direct":
            raise SignerError.failed(f"sign mode {sign_mode!r} is not supported by the local keyring")
        key = self._load(name)
        try:
            return key.sign(data, deterministic=True)
        except Exception as e:
            raise SignerError.failed(str(e), e)

    def __repr__(self) -> str:
        return f"LocalKeyring(backend={self._backend}, service={self._service_name})"


def create_keystore(
    backend: Optional[str] = None,
    home: Optional[str] = None,
    service_name: Optional[str] = None,
) -> LocalKeyring:
    """
    Create a local keyring from arguments, falling back to global config

    Args:
        backend: Keyring backend (defaults to COSMOS_KEYRING_BACKEND)
        home: Data directory (defaults to COSMOS_HOME)
        service_name: Key namespace (defaults to COSMOS_KEYRING_SERVICE_NAME)

    Returns:
        LocalKeyring instance
    """
    return LocalKeyring(
        backend=backend or global_config.keyring.backend,
        home=home or global_config.keyring.home or None,
        service_name=service_name or global_config.keyring.service_name,
    )
