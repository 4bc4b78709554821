"""
Client side of the pair-verify handshake.

Message flow (controller = C, accessory = A):

1. C -> A  start request:   method=0, seq=1, C's ephemeral public key
2. A -> C  start response:  seq=2, A's ephemeral public key,
                            Seal(PV-Msg02, {A identifier, A signature})
3. C -> A  finish request:  method=0, seq=3,
                            Seal(PV-Msg03, {C identifier, C signature})
4. A -> C  finish response: seq=4, optional error code

A signs   A-ephemeral || A-identifier || C-ephemeral
C signs   C-ephemeral || C-identifier || A-ephemeral

Any failure aborts the handshake; the controller must then be discarded.
"""

import logging
from enum import IntEnum
from typing import Optional, Tuple

from ..crypto.aead import (
    AEADCipher,
    AEADDecryptionError,
    PV_MSG02_NONCE,
    PV_MSG03_NONCE,
    TAG_SIZE,
)
from ..crypto.keys import EphemeralKeyPair, PUBLIC_KEY_SIZE, SIGNATURE_SIZE, sign, verify
from ..crypto.utils import fingerprint
from ..identity import ControllerIdentity, IdentityStore, UnknownAccessoryError
from .errors import (
    AuthenticationError,
    CryptoError,
    FormatError,
    PairVerifyError,
    PeerRejected,
    ProtocolError,
)
from .session import HandshakeState, VerifySession
from .tlv import TLV8Container, TLVFormatError, TLVType


PAIR_VERIFY_METHOD = 0x00


class Sequence(IntEnum):
    """Pair-verify sequence numbers."""
    START_REQUEST = 1
    START_RESPONSE = 2
    FINISH_REQUEST = 3
    FINISH_RESPONSE = 4


class VerifyClientController:
    """
    Drives one pair-verify attempt against one accessory.

    Usage:
        controller = VerifyClientController(identity, store, "bridge-1")
        reply = send(controller.initial_request())
        reply = send(controller.handle(reply))
        controller.handle(reply)          # returns None when complete
        key = controller.session_key
    """

    def __init__(self, identity: ControllerIdentity, identity_store: IdentityStore,
                 accessory_handle: str, ephemeral: Optional[EphemeralKeyPair] = None):
        """
        Initialize controller with a fresh session.

        Args:
            identity: Controller identifier and long-term signing key
            identity_store: Lookup of accessory long-term public keys
            accessory_handle: Key of the accessory in the identity store
            ephemeral: Fixed ephemeral keypair (test vectors only)
        """
        self.identity = identity
        self.identity_store = identity_store
        self.accessory_handle = accessory_handle
        self._session = VerifySession(ephemeral)
        self._state = HandshakeState.INIT
        self._aead = AEADCipher()
        self.logger = logging.getLogger(__name__)

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def session(self) -> VerifySession:
        return self._session

    @property
    def session_key(self) -> bytes:
        """
        Encryption key established by a completed handshake.

        Raises:
            ProtocolError: If the handshake has not completed
        """
        if self._state != HandshakeState.COMPLETE:
            raise ProtocolError(f"Handshake not complete (state {self._state.name})")
        return self._session.encryption_key

    def control_keys(self) -> Tuple[bytes, bytes]:
        """
        Derive (read_key, write_key) for the control channel.

        Raises:
            ProtocolError: If the handshake has not completed
        """
        if self._state != HandshakeState.COMPLETE:
            raise ProtocolError(f"Handshake not complete (state {self._state.name})")
        return self._session.derive_control_keys()

    def close(self) -> None:
        """Zero the session secrets. A completed session key is no longer available."""
        self._session.clear()
        if not self._state.is_terminal:
            self._transition(HandshakeState.ABORTED)

    # Outgoing

    def initial_request(self) -> TLV8Container:
        """
        Build the start request carrying the controller's ephemeral public key.

        Raises:
            ProtocolError: If called more than once
        """
        if self._state != HandshakeState.INIT:
            raise ProtocolError(f"Start request already sent (state {self._state.name})")

        cont_out = TLV8Container()
        cont_out.set_byte(TLVType.METHOD, PAIR_VERIFY_METHOD)
        cont_out.set_byte(TLVType.SEQUENCE_NUMBER, Sequence.START_REQUEST)
        cont_out.set_bytes(TLVType.PUBLIC_KEY, self._session.public_key)

        self.logger.debug(f"Start request with ephemeral key {fingerprint(self._session.public_key)}")
        self._transition(HandshakeState.AWAITING_START_RESPONSE)
        return cont_out

    # Incoming

    def handle(self, cont_in: TLV8Container) -> Optional[TLV8Container]:
        """
        Process a message from the accessory.

        Args:
            cont_in: Decoded accessory message

        Returns:
            The next request to send, or None once the handshake is complete

        Raises:
            PairVerifyError: On any failure; the handshake is aborted
            Exception: Unexpected identity store errors are re-raised after
                the handshake is aborted
        """
        if self._state.is_terminal:
            raise ProtocolError(f"Handshake already finished (state {self._state.name})")

        try:
            return self._dispatch(cont_in)
        except PairVerifyError as e:
            self._abort(e)
            raise
        except TLVFormatError as e:
            error = FormatError(f"Malformed message: {e}")
            self._abort(error)
            raise error from e
        except Exception as e:
            self._abort(e)
            raise

    def handle_bytes(self, data: bytes) -> Optional[bytes]:
        """
        Process a serialized accessory message.

        Returns:
            The serialized next request, or None once the handshake is complete
        """
        if self._state.is_terminal:
            raise ProtocolError(f"Handshake already finished (state {self._state.name})")

        try:
            cont_in = TLV8Container.from_bytes(data)
        except TLVFormatError as e:
            error = FormatError(f"Malformed message: {e}")
            self._abort(error)
            raise error from e

        cont_out = self.handle(cont_in)
        return cont_out.to_bytes() if cont_out is not None else None

    def _dispatch(self, cont_in: TLV8Container) -> Optional[TLV8Container]:
        # Method is optional, but if sent it must be pair-verify
        method = cont_in.get_byte(TLVType.METHOD)
        if method is not None and method != PAIR_VERIFY_METHOD:
            raise ProtocolError(f"Unsupported method {method}")

        seq = cont_in.get_byte(TLVType.SEQUENCE_NUMBER)
        if seq is None:
            raise FormatError("Missing sequence number")

        if seq == Sequence.START_RESPONSE and self._state == HandshakeState.AWAITING_START_RESPONSE:
            return self._handle_start_response(cont_in)
        if seq == Sequence.FINISH_RESPONSE and self._state == HandshakeState.AWAITING_FINISH_RESPONSE:
            return self._handle_finish_response(cont_in)

        raise ProtocolError(f"Unexpected sequence number {seq} in state {self._state.name}")

    def _handle_start_response(self, cont_in: TLV8Container) -> TLV8Container:
        """
        Verify the accessory and build the finish request.

        The accessory proves its identity by signing
        A-ephemeral || A-identifier || C-ephemeral with its LTSK.
        """
        accessory_public = cont_in.get_bytes(TLVType.PUBLIC_KEY)
        if accessory_public is None or len(accessory_public) != PUBLIC_KEY_SIZE:
            size = 0 if accessory_public is None else len(accessory_public)
            raise FormatError(f"Invalid accessory public key size {size}")

        sealed = cont_in.get_bytes(TLVType.ENCRYPTED_DATA)
        if sealed is None or len(sealed) < TAG_SIZE:
            raise FormatError("Missing or truncated encrypted data")

        self._session.set_peer_public_key(accessory_public)
        self._session.setup_encryption_key()
        self.logger.debug(f"Accessory ephemeral key {fingerprint(accessory_public)}, session key derived")

        # Decrypt
        message, mac = sealed[:-TAG_SIZE], sealed[-TAG_SIZE:]
        try:
            decrypted = self._aead.decrypt(self._session.encryption_key, PV_MSG02_NONCE, message, mac)
        except AEADDecryptionError as e:
            raise CryptoError("Authentication failed for start response") from e

        try:
            sub_tlv = TLV8Container.from_bytes(decrypted)
            username = sub_tlv.get_bytes(TLVType.USERNAME)
            signature = sub_tlv.get_bytes(TLVType.ED25519_SIGNATURE)
        except TLVFormatError as e:
            raise FormatError(f"Malformed encrypted start response: {e}") from e

        if not username:
            raise FormatError("Missing accessory identifier")
        if not signature or len(signature) != SIGNATURE_SIZE:
            raise FormatError("Missing or invalid accessory signature")
        try:
            username.decode('utf-8')
        except UnicodeDecodeError as e:
            raise FormatError("Accessory identifier is not valid UTF-8") from e

        # Validate signature
        try:
            ltpk = self.identity_store.public_key_for_accessory(self.accessory_handle)
        except (UnknownAccessoryError, ValueError, OSError) as e:
            raise AuthenticationError(f"No long-term key for accessory {self.accessory_handle}") from e

        material = self._session.accessory_proof_material(username)
        if not verify(ltpk, material, signature):
            raise AuthenticationError("Accessory signature invalid")

        self.logger.debug(f"Accessory {self.accessory_handle} signature verified")

        cont_out = self._build_finish_request()
        self._transition(HandshakeState.AWAITING_FINISH_RESPONSE)
        return cont_out

    def _build_finish_request(self) -> TLV8Container:
        material = self._session.controller_proof_material(self.identity.identifier_bytes)
        signature = sign(self.identity.ltsk, material)

        tlv_encrypt = TLV8Container()
        tlv_encrypt.set_string(TLVType.USERNAME, self.identity.identifier)
        tlv_encrypt.set_bytes(TLVType.ED25519_SIGNATURE, signature)

        encrypted, mac = self._aead.encrypt(
            self._session.encryption_key, PV_MSG03_NONCE, tlv_encrypt.to_bytes()
        )

        cont_out = TLV8Container()
        cont_out.set_byte(TLVType.METHOD, PAIR_VERIFY_METHOD)
        cont_out.set_byte(TLVType.SEQUENCE_NUMBER, Sequence.FINISH_REQUEST)
        cont_out.set_bytes(TLVType.ENCRYPTED_DATA, encrypted + mac)
        return cont_out

    def _handle_finish_response(self, cont_in: TLV8Container) -> None:
        err_code = cont_in.get_byte(TLVType.ERROR_CODE)
        if err_code:
            raise PeerRejected(err_code)

        self._transition(HandshakeState.COMPLETE)
        self.logger.info(f"Pair-verify with accessory {self.accessory_handle} complete")
        return None

    # State

    def _transition(self, new_state: HandshakeState) -> None:
        self.logger.debug(f"Pair-verify state {self._state.name} -> {new_state.name}")
        self._state = new_state

    def _abort(self, error: Exception) -> None:
        self.logger.warning(
            f"Pair-verify with accessory {self.accessory_handle} aborted in state "
            f"{self._state.name}: {type(error).__name__}: {error}"
        )
        self._session.clear()
        self._transition(HandshakeState.ABORTED)


def create_verify_controller(identity: ControllerIdentity, identity_store: IdentityStore,
                             accessory_handle: str,
                             ephemeral_private_key: Optional[bytes] = None) -> VerifyClientController:
    """
    Create a controller for one pair-verify attempt.

    Args:
        identity: Controller identifier and long-term signing key
        identity_store: Lookup of accessory long-term public keys
        accessory_handle: Key of the accessory in the identity store
        ephemeral_private_key: Fixed 32-byte X25519 scalar (test vectors only)

    Returns:
        VerifyClientController in the INIT state
    """
    ephemeral = None
    if ephemeral_private_key is not None:
        ephemeral = EphemeralKeyPair.from_private_bytes(ephemeral_private_key)
    return VerifyClientController(identity, identity_store, accessory_handle, ephemeral)
