"""
Error taxonomy for the pair-verify handshake.

Every error is terminal for the handshake that raised it: the caller has to
start over with a new controller and fresh ephemeral keys. Messages never
include key material.
"""

from enum import IntEnum
from typing import Optional


class PairingError(IntEnum):
    """Error codes an accessory may return in the finish response."""
    UNKNOWN = 0x01
    AUTHENTICATION = 0x02
    BACKOFF = 0x03
    MAX_PEERS = 0x04
    MAX_TRIES = 0x05
    UNAVAILABLE = 0x06
    BUSY = 0x07


class PairVerifyError(Exception):
    """Base class for all handshake failures."""
    pass


class FormatError(PairVerifyError):
    """A message or one of its fields is structurally malformed."""
    pass


class ProtocolError(PairVerifyError):
    """Unexpected method, sequence number or handshake state."""
    pass


class CryptoError(PairVerifyError):
    """AEAD authentication or key agreement failed."""
    pass


class AuthenticationError(PairVerifyError):
    """The accessory's identity could not be verified."""
    pass


class PeerRejected(PairVerifyError):
    """The accessory answered the finish request with a non-zero error code."""
    
    def __init__(self, code: int):
        self.code = code
        super().__init__(f"Accessory rejected pair-verify: {self.reason}")
    
    @property
    def pairing_error(self) -> Optional[PairingError]:
        try:
            return PairingError(self.code)
        except ValueError:
            return None
    
    @property
    def reason(self) -> str:
        error = self.pairing_error
        if error is None:
            return f"unknown error code {self.code:#04x}"
        return f"{error.name.lower()} ({self.code:#04x})"
