"""
Long-term identity material for pair-verify.

The controller signs with its Ed25519 long-term secret key (LTSK); the
accessory is authenticated against the long-term public key (LTPK) recorded
for it when the two were paired. Pairing itself happens elsewhere, this
module only stores and looks up the result.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable

from .crypto.keys import (
    PUBLIC_KEY_SIZE,
    PRIVATE_KEY_SIZE,
    generate_signing_key,
    signing_public_key,
)
from .crypto.utils import fingerprint


logger = logging.getLogger(__name__)

KEY_FILE_SUFFIX = ".hex"


class UnknownAccessoryError(KeyError):
    """Raised when no long-term public key is known for an accessory."""
    pass


@dataclass(frozen=True)
class ControllerIdentity:
    """
    Controller identifier and Ed25519 long-term keypair.
    
    Fields:
        identifier: Controller pairing identifier (UTF-8 string)
        ltsk: 32-byte Ed25519 seed
    """
    identifier: str
    ltsk: bytes = field(repr=False)
    
    def __post_init__(self):
        if not self.identifier:
            raise ValueError("Controller identifier must not be empty")
        if len(self.ltsk) != PRIVATE_KEY_SIZE:
            raise ValueError(f"Controller LTSK must be {PRIVATE_KEY_SIZE} bytes")
    
    @property
    def ltpk(self) -> bytes:
        """Raw 32-byte Ed25519 public key."""
        return signing_public_key(self.ltsk)
    
    @property
    def identifier_bytes(self) -> bytes:
        return self.identifier.encode('utf-8')
    
    @classmethod
    def generate(cls, identifier: str) -> 'ControllerIdentity':
        """Create an identity with a new random keypair."""
        return cls(identifier=identifier, ltsk=generate_signing_key())


class IdentityStore:
    """
    Lookup of accessory long-term public keys by accessory handle.
    """
    
    def public_key_for_accessory(self, handle: str) -> bytes:
        """
        Return the 32-byte LTPK for an accessory.
        
        Raises:
            UnknownAccessoryError: If the accessory is not paired
        """
        raise NotImplementedError


class InMemoryIdentityStore(IdentityStore):
    """Identity store backed by a dictionary."""
    
    def __init__(self, accessories: Dict[str, bytes] = None):
        self._accessories: Dict[str, bytes] = {}
        for handle, ltpk in (accessories or {}).items():
            self.add_accessory(handle, ltpk)
    
    def add_accessory(self, handle: str, ltpk: bytes) -> None:
        _check_public_key(ltpk)
        self._accessories[handle] = bytes(ltpk)
    
    def remove_accessory(self, handle: str) -> None:
        try:
            del self._accessories[handle]
        except KeyError:
            raise UnknownAccessoryError(handle) from None
    
    def public_key_for_accessory(self, handle: str) -> bytes:
        try:
            return self._accessories[handle]
        except KeyError:
            raise UnknownAccessoryError(handle) from None
    
    def handles(self) -> Iterable[str]:
        return list(self._accessories)


class FileIdentityStore(IdentityStore):
    """
    Identity store keeping one hex key file per accessory in a directory.
    """
    
    def __init__(self, directory: str):
        self.directory = directory
        os.makedirs(directory, exist_ok=True)
    
    def _path(self, handle: str) -> str:
        safe = "".join(c for c in handle if c.isalnum() or c in ("-", "_", "."))
        if not safe or safe != handle:
            raise ValueError(f"Invalid accessory handle: {handle!r}")
        return os.path.join(self.directory, safe + KEY_FILE_SUFFIX)
    
    def add_accessory(self, handle: str, ltpk: bytes) -> None:
        _check_public_key(ltpk)
        create_key_file(self._path(handle), ltpk)
        logger.info(f"Stored long-term key {fingerprint(ltpk)} for accessory {handle}")
    
    def remove_accessory(self, handle: str) -> None:
        path = self._path(handle)
        if not os.path.exists(path):
            raise UnknownAccessoryError(handle)
        os.remove(path)
    
    def public_key_for_accessory(self, handle: str) -> bytes:
        path = self._path(handle)
        if not os.path.exists(path):
            raise UnknownAccessoryError(handle)
        ltpk = load_key_file(path)
        _check_public_key(ltpk)
        return ltpk
    
    def handles(self) -> Iterable[str]:
        return sorted(
            name[:-len(KEY_FILE_SUFFIX)]
            for name in os.listdir(self.directory)
            if name.endswith(KEY_FILE_SUFFIX)
        )


def _check_public_key(ltpk: bytes) -> None:
    if len(ltpk) != PUBLIC_KEY_SIZE:
        raise ValueError(f"Accessory LTPK must be {PUBLIC_KEY_SIZE} bytes, got {len(ltpk)}")


def load_key_file(key_file_path: str) -> bytes:
    """
    Load a 32-byte key from a file.
    
    Args:
        key_file_path: Path to the file containing the key
        
    Returns:
        bytes: The 32-byte key
        
    Raises:
        FileNotFoundError: If the key file doesn't exist
        ValueError: If the key file format is invalid
    """
    if not os.path.exists(key_file_path):
        raise FileNotFoundError(f"Key file not found: {key_file_path}")
    
    with open(key_file_path, 'rb') as f:
        key_data = f.read()
    
    # Support different formats
    if len(key_data) == 32:
        # Raw binary key
        return key_data
    elif len(key_data) == 64:
        try:
            return bytes.fromhex(key_data.decode('ascii'))
        except (ValueError, UnicodeDecodeError):
            pass
    elif len(key_data) == 65 and key_data.endswith(b'\n'):
        # Hex-encoded key with newline
        try:
            return bytes.fromhex(key_data[:-1].decode('ascii'))
        except (ValueError, UnicodeDecodeError):
            pass
    
    raise ValueError(f"Invalid key format. Expected 32 raw bytes or 64 hex characters, got {len(key_data)} bytes")


def create_key_file(key_file_path: str, key: bytes) -> None:
    """
    Save a key as hex with owner-only permissions.
    
    Args:
        key_file_path: Path where to save the key file
        key: Key bytes
    """
    with open(key_file_path, 'w') as f:
        f.write(key.hex())
    
    try:
        os.chmod(key_file_path, 0o600)  # rw-------
    except (OSError, AttributeError):
        logger.warning(f"Could not set restrictive permissions on {key_file_path}")
