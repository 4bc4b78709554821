"""
HAP pair-verify client.

Establishes a short-lived encrypted session between a controller and an
already-paired accessory: X25519 key agreement, HKDF-SHA-512 key
derivation, ChaCha20-Poly1305 sealed messages and Ed25519 mutual
authentication, in a strict two-round exchange.

Basic Usage:
    >>> from pairverify import ControllerIdentity, InMemoryIdentityStore
    >>> from pairverify import create_verify_controller, perform_pair_verify
    >>>
    >>> identity = ControllerIdentity.generate("controller-1")
    >>> store = InMemoryIdentityStore({"bridge": accessory_ltpk})
    >>> controller = create_verify_controller(identity, store, "bridge")
    >>>
    >>> # exchange() sends bytes to the accessory and returns its reply
    >>> session_key = perform_pair_verify(controller, exchange)
    >>> read_key, write_key = controller.control_keys()
"""

from typing import Callable

__version__ = "0.1.0"

# Protocol components
from .protocol.controller import VerifyClientController, create_verify_controller
from .protocol.session import VerifySession, HandshakeState
from .protocol.tlv import TLV8Container, TLVType, TLVFormatError
from .protocol.errors import (
    PairVerifyError,
    FormatError,
    ProtocolError,
    CryptoError,
    AuthenticationError,
    PeerRejected,
    PairingError,
)

# Identity and configuration
from .identity import (
    ControllerIdentity,
    IdentityStore,
    InMemoryIdentityStore,
    FileIdentityStore,
    UnknownAccessoryError,
)
from .config import PairVerifyConfig, ConfigError


def perform_pair_verify(controller: VerifyClientController,
                        exchange: Callable[[bytes], bytes]) -> bytes:
    """
    Run a complete pair-verify handshake over a transport.
    
    Args:
        controller: Controller in the INIT state
        exchange: Sends a serialized request and returns the accessory's reply
        
    Returns:
        The session encryption key
        
    Raises:
        PairVerifyError: If the handshake fails at any step
    """
    request = controller.initial_request().to_bytes()
    while request is not None:
        reply = exchange(request)
        request = controller.handle_bytes(reply)
    
    return controller.session_key


__all__ = [
    '__version__',
    
    # High-level interface
    'create_verify_controller',
    'perform_pair_verify',
    
    # Protocol components
    'VerifyClientController',
    'VerifySession',
    'HandshakeState',
    'TLV8Container',
    'TLVType',
    'TLVFormatError',
    
    # Errors
    'PairVerifyError',
    'FormatError',
    'ProtocolError',
    'CryptoError',
    'AuthenticationError',
    'PeerRejected',
    'PairingError',
    
    # Identity and configuration
    'ControllerIdentity',
    'IdentityStore',
    'InMemoryIdentityStore',
    'FileIdentityStore',
    'UnknownAccessoryError',
    'PairVerifyConfig',
    'ConfigError',
]
