"""
AEAD (Authenticated Encryption with Associated Data) for pair-verify.

Pair-verify seals its nested messages with ChaCha20-Poly1305. Each message
uses a fixed 8-byte nonce label ("PV-Msg02", "PV-Msg03") which is padded
with four leading zero bytes to the 12-byte nonce of the IETF construction.
"""

from typing import Tuple, Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305


KEY_SIZE = 32
NONCE_SIZE = 12
TAG_SIZE = 16

# Nonce labels for the two sealed handshake messages
PV_MSG02_NONCE = b"PV-Msg02"
PV_MSG03_NONCE = b"PV-Msg03"


class AEADDecryptionError(Exception):
    """Exception raised when AEAD decryption fails."""
    pass


def pad_nonce(label: bytes) -> bytes:
    """
    Expand a short nonce label to a 12-byte ChaCha20-Poly1305 nonce.
    
    Args:
        label: Nonce label of at most 12 bytes
        
    Returns:
        12-byte nonce, left-padded with zeros
    """
    if len(label) > NONCE_SIZE:
        raise ValueError(f"Nonce label must be at most {NONCE_SIZE} bytes")
    return b"\x00" * (NONCE_SIZE - len(label)) + label


class AEADCipher:
    """
    ChaCha20-Poly1305 cipher with a detached authentication tag.
    """
    
    def encrypt(self, key: bytes, nonce: bytes, plaintext: bytes,
                associated_data: Optional[bytes] = None) -> Tuple[bytes, bytes]:
        """
        Encrypt plaintext with AEAD.
        
        Args:
            key: 32-byte encryption key
            nonce: Nonce label (padded to 12 bytes)
            plaintext: Data to encrypt
            associated_data: Additional authenticated data (optional)
            
        Returns:
            Tuple of (ciphertext, authentication_tag)
        """
        if len(key) != KEY_SIZE:
            raise ValueError(f"ChaCha20-Poly1305 requires {KEY_SIZE}-byte key")
        
        sealed = ChaCha20Poly1305(key).encrypt(pad_nonce(nonce), plaintext, associated_data)
        
        # Tag is the last 16 bytes
        return sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
    
    def decrypt(self, key: bytes, nonce: bytes, ciphertext: bytes, tag: bytes,
                associated_data: Optional[bytes] = None) -> bytes:
        """
        Decrypt ciphertext with AEAD.
        
        Args:
            key: 32-byte decryption key
            nonce: Nonce label used for encryption
            ciphertext: Encrypted data
            tag: 16-byte authentication tag
            associated_data: Additional authenticated data (optional)
            
        Returns:
            Decrypted plaintext
            
        Raises:
            AEADDecryptionError: If authentication fails
        """
        if len(key) != KEY_SIZE:
            raise ValueError(f"ChaCha20-Poly1305 requires {KEY_SIZE}-byte key")
        if len(tag) != TAG_SIZE:
            raise ValueError(f"ChaCha20-Poly1305 requires {TAG_SIZE}-byte tag")
        
        try:
            return ChaCha20Poly1305(key).decrypt(
                pad_nonce(nonce), ciphertext + tag, associated_data
            )
        except InvalidTag as e:
            raise AEADDecryptionError("ChaCha20-Poly1305 authentication failed") from e
    
    @property
    def algorithm_name(self) -> str:
        return "ChaCha20-Poly1305"
    
    @property
    def tag_size(self) -> int:
        return TAG_SIZE


def seal(key: bytes, nonce: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt and return ciphertext with the tag appended, as sent on the wire.
    """
    ciphertext, tag = AEADCipher().encrypt(key, nonce, plaintext)
    return ciphertext + tag


def open_sealed(key: bytes, nonce: bytes, sealed: bytes) -> bytes:
    """
    Split a wire payload into ciphertext and trailing tag, then decrypt it.
    
    Raises:
        ValueError: If the payload is shorter than the tag
        AEADDecryptionError: If authentication fails
    """
    if len(sealed) < TAG_SIZE:
        raise ValueError(f"Sealed payload shorter than {TAG_SIZE}-byte tag")
    return AEADCipher().decrypt(key, nonce, sealed[:-TAG_SIZE], sealed[-TAG_SIZE:])
