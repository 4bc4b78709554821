"""
Protocol layer for pair-verify.

This module provides:
- TLV8 message containers
- Session state and the handshake state machine
- The client-side verify controller
- The handshake error taxonomy
"""

from .tlv import TLV8Container, TLVType, TLVFormatError
from .errors import (
    PairVerifyError,
    FormatError,
    ProtocolError,
    CryptoError,
    AuthenticationError,
    PeerRejected,
    PairingError
)
from .session import VerifySession, HandshakeState
from .controller import VerifyClientController, Sequence, create_verify_controller

__all__ = [
    'TLV8Container',
    'TLVType',
    'TLVFormatError',
    'PairVerifyError',
    'FormatError',
    'ProtocolError',
    'CryptoError',
    'AuthenticationError',
    'PeerRejected',
    'PairingError',
    'VerifySession',
    'HandshakeState',
    'VerifyClientController',
    'Sequence',
    'create_verify_controller'
]
