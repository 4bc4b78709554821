"""
Asymmetric keys used by pair-verify.

- X25519 ephemeral keypairs, one per handshake attempt
- Ed25519 long-term signatures (sign with the controller LTSK, verify with
  the accessory LTPK)
"""

from typing import Optional, Union

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519


PUBLIC_KEY_SIZE = 32
PRIVATE_KEY_SIZE = 32
SIGNATURE_SIZE = 64


class KeyAgreementError(Exception):
    """Raised when X25519 key agreement fails."""
    pass


def _raw_public(public_key) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )


class EphemeralKeyPair:
    """
    X25519 keypair for a single handshake attempt.
    """
    
    def __init__(self, private_key: x25519.X25519PrivateKey):
        self._private_key = private_key
        self.public_bytes = _raw_public(private_key.public_key())
    
    @classmethod
    def generate(cls) -> 'EphemeralKeyPair':
        """Create a fresh random keypair."""
        return cls(x25519.X25519PrivateKey.generate())
    
    @classmethod
    def from_private_bytes(cls, data: bytes) -> 'EphemeralKeyPair':
        """
        Load a keypair from a raw 32-byte private scalar.
        
        Only meant for reproducible test vectors.
        """
        if len(data) != PRIVATE_KEY_SIZE:
            raise ValueError(f"X25519 private key must be {PRIVATE_KEY_SIZE} bytes")
        return cls(x25519.X25519PrivateKey.from_private_bytes(data))
    
    def exchange(self, peer_public: bytes) -> bytes:
        """
        Compute the X25519 shared secret with a peer public key.
        
        Args:
            peer_public: Peer's 32-byte raw public key
            
        Returns:
            32-byte shared secret
            
        Raises:
            KeyAgreementError: If the peer key is invalid or the result is degenerate
        """
        if len(peer_public) != PUBLIC_KEY_SIZE:
            raise KeyAgreementError(f"X25519 public key must be {PUBLIC_KEY_SIZE} bytes")
        
        try:
            peer = x25519.X25519PublicKey.from_public_bytes(peer_public)
            return self._private_key.exchange(peer)
        except ValueError as e:
            # Raised by the library for low-order points (all-zero output)
            raise KeyAgreementError("X25519 key agreement failed") from e


def load_signing_key(private_key: Union[bytes, ed25519.Ed25519PrivateKey]) -> ed25519.Ed25519PrivateKey:
    """Accept either a raw 32-byte Ed25519 seed or a loaded private key."""
    if isinstance(private_key, ed25519.Ed25519PrivateKey):
        return private_key
    if len(private_key) != PRIVATE_KEY_SIZE:
        raise ValueError(f"Ed25519 private key must be {PRIVATE_KEY_SIZE} bytes")
    return ed25519.Ed25519PrivateKey.from_private_bytes(private_key)


def signing_public_key(private_key: Union[bytes, ed25519.Ed25519PrivateKey]) -> bytes:
    """Raw 32-byte Ed25519 public key for a private key."""
    return _raw_public(load_signing_key(private_key).public_key())


def generate_signing_key() -> bytes:
    """Generate a raw 32-byte Ed25519 seed."""
    return ed25519.Ed25519PrivateKey.generate().private_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PrivateFormat.Raw,
        encryption_algorithm=serialization.NoEncryption()
    )


def sign(private_key: Union[bytes, ed25519.Ed25519PrivateKey], message: bytes) -> bytes:
    """
    Sign a message with Ed25519.
    
    Returns:
        64-byte signature
    """
    return load_signing_key(private_key).sign(message)


def verify(public_key: bytes, message: bytes, signature: bytes,
           key: Optional[ed25519.Ed25519PublicKey] = None) -> bool:
    """
    Verify an Ed25519 signature.
    
    Args:
        public_key: Signer's raw 32-byte public key
        message: Signed bytes
        signature: 64-byte signature
        key: Already loaded public key (skips parsing public_key)
        
    Returns:
        True if the signature is valid, False otherwise
    """
    try:
        if key is None:
            key = ed25519.Ed25519PublicKey.from_public_bytes(public_key)
        key.verify(signature, message)
        return True
    except (InvalidSignature, ValueError):
        return False
