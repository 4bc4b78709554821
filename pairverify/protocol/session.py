"""
Pair-verify session state.

Holds the ephemeral X25519 keypair of one handshake attempt, the accessory's
ephemeral public key, the shared secret and the derived encryption key.
The session is advanced exactly twice (peer key, then key derivation) and
is never reused for another attempt.
"""

from enum import Enum, auto
from typing import Optional, Tuple

from ..crypto.kdf import derive_verify_encryption_key, derive_control_keys
from ..crypto.keys import EphemeralKeyPair, KeyAgreementError, PUBLIC_KEY_SIZE
from ..utils.memory import SecureBytes
from .errors import CryptoError, FormatError, ProtocolError


class HandshakeState(Enum):
    """Client handshake states. COMPLETE and ABORTED are terminal."""
    INIT = auto()
    AWAITING_START_RESPONSE = auto()
    AWAITING_FINISH_RESPONSE = auto()
    COMPLETE = auto()
    ABORTED = auto()
    
    @property
    def is_terminal(self) -> bool:
        return self in (HandshakeState.COMPLETE, HandshakeState.ABORTED)


class VerifySession:
    """
    Key material for a single pair-verify attempt.
    """
    
    def __init__(self, ephemeral: Optional[EphemeralKeyPair] = None):
        """
        Initialize session with a fresh ephemeral keypair.
        
        Args:
            ephemeral: Keypair to use instead of a random one (test vectors only)
        """
        self._ephemeral = ephemeral or EphemeralKeyPair.generate()
        self._peer_public_key: Optional[bytes] = None
        self._shared_secret: Optional[SecureBytes] = None
        self._encryption_key: Optional[SecureBytes] = None
        self._cleared = False
    
    @property
    def public_key(self) -> bytes:
        """Controller's ephemeral public key."""
        return self._ephemeral.public_bytes
    
    @property
    def peer_public_key(self) -> Optional[bytes]:
        """Accessory's ephemeral public key, None until received."""
        return self._peer_public_key
    
    @property
    def has_shared_secret(self) -> bool:
        return self._shared_secret is not None and not self._shared_secret.is_cleared()
    
    @property
    def encryption_key(self) -> bytes:
        """
        Key sealing the pair-verify messages.
        
        Raises:
            ProtocolError: If the key has not been derived or was cleared
        """
        if self._encryption_key is None or self._encryption_key.is_cleared():
            raise ProtocolError("Session encryption key is not available")
        return bytes(self._encryption_key)
    
    def set_peer_public_key(self, peer_public_key: bytes) -> None:
        """
        Record the accessory's ephemeral public key and derive the shared secret.
        
        Raises:
            FormatError: If the key is not 32 bytes
            ProtocolError: If a peer key was already set
            CryptoError: If key agreement fails
        """
        self._check_usable()
        if self._peer_public_key is not None:
            raise ProtocolError("Peer public key already set for this session")
        if len(peer_public_key) != PUBLIC_KEY_SIZE:
            raise FormatError(
                f"Invalid accessory public key size {len(peer_public_key)}, expected {PUBLIC_KEY_SIZE}"
            )
        
        try:
            shared = self._ephemeral.exchange(peer_public_key)
        except KeyAgreementError as e:
            raise CryptoError("Key agreement with accessory public key failed") from e
        
        self._peer_public_key = bytes(peer_public_key)
        self._shared_secret = SecureBytes(shared)
    
    def setup_encryption_key(self) -> None:
        """
        Derive the session encryption key from the shared secret.
        
        Raises:
            ProtocolError: If there is no shared secret or the key already exists
        """
        self._check_usable()
        if not self.has_shared_secret:
            raise ProtocolError("Cannot derive encryption key before the shared secret")
        if self._encryption_key is not None:
            raise ProtocolError("Session encryption key already derived")
        
        self._encryption_key = SecureBytes(
            derive_verify_encryption_key(bytes(self._shared_secret))
        )
    
    def derive_control_keys(self) -> Tuple[bytes, bytes]:
        """
        Derive the (read_key, write_key) pair for the encrypted control channel.
        
        Raises:
            ProtocolError: If there is no shared secret
        """
        self._check_usable()
        if not self.has_shared_secret:
            raise ProtocolError("Cannot derive control keys before the shared secret")
        return derive_control_keys(bytes(self._shared_secret))
    
    def accessory_proof_material(self, accessory_identifier: bytes) -> bytes:
        """Bytes the accessory signs: its key || its identifier || our key."""
        return self._require_peer() + accessory_identifier + self.public_key
    
    def controller_proof_material(self, controller_identifier: bytes) -> bytes:
        """Bytes the controller signs: our key || our identifier || its key."""
        return self.public_key + controller_identifier + self._require_peer()
    
    def clear(self) -> None:
        """Zero all derived secrets. The session cannot be used afterwards."""
        if self._shared_secret is not None:
            self._shared_secret.clear()
        if self._encryption_key is not None:
            self._encryption_key.clear()
        self._cleared = True
    
    @property
    def is_cleared(self) -> bool:
        return self._cleared
    
    def _require_peer(self) -> bytes:
        if self._peer_public_key is None:
            raise ProtocolError("Accessory public key not received yet")
        return self._peer_public_key
    
    def _check_usable(self) -> None:
        if self._cleared:
            raise ProtocolError("Session has been cleared")
    
    def __del__(self):
        if hasattr(self, '_shared_secret'):
            self.clear()
