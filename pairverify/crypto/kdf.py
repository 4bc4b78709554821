"""
Key Derivation Functions for pair-verify.

All keys are derived with HKDF-SHA-512 from the X25519 shared secret, using
fixed salt/info labels for domain separation:
- the handshake key that seals PV-Msg02 / PV-Msg03
- the read/write keys of the control channel that follows the handshake
"""

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF


class KeyDerivationError(Exception):
    """Raised when key derivation fails."""
    pass


# Protocol constants
PAIR_VERIFY_ENCRYPT_SALT = b"Pair-Verify-Encrypt-Salt"
PAIR_VERIFY_ENCRYPT_INFO = b"Pair-Verify-Encrypt-Info"
CONTROL_SALT = b"Control-Salt"
CONTROL_READ_INFO = b"Control-Read-Encryption-Key"
CONTROL_WRITE_INFO = b"Control-Write-Encryption-Key"
KEY_LENGTH = 32  # 256-bit keys


def derive_key(input_key: bytes, salt: bytes, info: bytes, length: int = KEY_LENGTH) -> bytes:
    """
    Derive a key with HKDF-SHA-512.
    
    Args:
        input_key: Input keying material (the shared secret)
        salt: HKDF salt label
        info: HKDF info label
        length: Output size in bytes
        
    Returns:
        Derived key
        
    Raises:
        KeyDerivationError: If derivation fails or parameters are invalid
    """
    if not input_key:
        raise KeyDerivationError("Input key must not be empty")
    
    try:
        hkdf = HKDF(
            algorithm=hashes.SHA512(),
            length=length,
            salt=salt,
            info=info,
        )
        return hkdf.derive(input_key)
    except Exception as e:
        raise KeyDerivationError(f"Key derivation failed: {e}") from e


def derive_verify_encryption_key(shared_secret: bytes) -> bytes:
    """Derive the key that seals the pair-verify messages."""
    return derive_key(shared_secret, PAIR_VERIFY_ENCRYPT_SALT, PAIR_VERIFY_ENCRYPT_INFO)


def derive_control_keys(shared_secret: bytes):
    """
    Derive the control channel keys from the pair-verify shared secret.
    
    Read and write are named from the controller's point of view: the
    controller decrypts with the read key and encrypts with the write key.
    
    Returns:
        Tuple of (read_key, write_key)
    """
    read_key = derive_key(shared_secret, CONTROL_SALT, CONTROL_READ_INFO)
    write_key = derive_key(shared_secret, CONTROL_SALT, CONTROL_WRITE_INFO)
    return read_key, write_key
