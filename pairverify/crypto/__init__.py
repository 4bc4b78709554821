"""
Cryptographic primitives for pair-verify.

Thin wrappers over the `cryptography` package:
- Key derivation (HKDF-SHA-512)
- Authenticated encryption (ChaCha20-Poly1305)
- X25519 key agreement and Ed25519 signatures
"""

from .kdf import derive_key, derive_verify_encryption_key, derive_control_keys, KeyDerivationError
from .aead import AEADCipher, AEADDecryptionError, seal, open_sealed
from .keys import EphemeralKeyPair, KeyAgreementError, sign, verify

__all__ = [
    'derive_key',
    'derive_verify_encryption_key',
    'derive_control_keys',
    'KeyDerivationError',
    'AEADCipher',
    'AEADDecryptionError',
    'seal',
    'open_sealed',
    'EphemeralKeyPair',
    'KeyAgreementError',
    'sign',
    'verify'
]
