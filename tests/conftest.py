"""
Shared fixtures for the pair-verify tests.

ReferenceAccessory plays the accessory side of the handshake. It is built
directly on the `cryptography` primitives and its own minimal TLV encoding,
so expected values are computed independently of the pairverify package.
"""

from typing import Dict, List, Optional, Tuple

import pytest
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ed25519, x25519
from cryptography.hazmat.primitives.ciphers.aead import ChaCha20Poly1305
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from pairverify import ControllerIdentity, InMemoryIdentityStore, create_verify_controller


# Fixed test keys
CONTROLLER_EPHEMERAL = bytes(range(1, 33))
ACCESSORY_EPHEMERAL = bytes(range(33, 65))
CONTROLLER_LTSK = bytes([0x11] * 32)
ACCESSORY_LTSK = bytes([0x22] * 32)
CONTROLLER_ID = "controller-1"
ACCESSORY_ID = b"AA:BB:CC:DD:EE:FF"
ACCESSORY_HANDLE = "bridge-1"

# Wire tags
METHOD = 0
USERNAME = 1
PUBLIC_KEY = 3
ENCRYPTED_DATA = 5
SEQUENCE = 6
ERROR_CODE = 7
SIGNATURE = 10


def raw_public(key) -> bytes:
    return key.public_key().public_bytes(
        encoding=serialization.Encoding.Raw,
        format=serialization.PublicFormat.Raw
    )


def tlv(*items: Tuple[int, bytes]) -> bytes:
    """Encode short TLV8 items (values below 256 bytes)."""
    out = b""
    for tag, value in items:
        assert len(value) < 256
        out += bytes([tag, len(value)]) + value
    return out


def parse_tlv(data: bytes) -> Dict[int, bytes]:
    """Decode short TLV8 items."""
    items = {}
    ptr = 0
    while ptr < len(data):
        tag, length = data[ptr], data[ptr + 1]
        items[tag] = data[ptr + 2:ptr + 2 + length]
        ptr += 2 + length
    return items


def hkdf_sha512(ikm: bytes, salt: bytes, info: bytes) -> bytes:
    return HKDF(algorithm=hashes.SHA512(), length=32, salt=salt, info=info).derive(ikm)


def chacha_nonce(label: bytes) -> bytes:
    return b"\x00\x00\x00\x00" + label


class ReferenceAccessory:
    """
    Accessory side of pair-verify for tests.
    """

    def __init__(self, ltsk: bytes = ACCESSORY_LTSK, pairing_id: bytes = ACCESSORY_ID,
                 ephemeral: Optional[bytes] = ACCESSORY_EPHEMERAL,
                 controller_ltpk: Optional[bytes] = None):
        self.ltsk = ed25519.Ed25519PrivateKey.from_private_bytes(ltsk)
        self.ltpk = raw_public(self.ltsk)
        self.pairing_id = pairing_id
        if ephemeral is None:
            self.ephemeral = x25519.X25519PrivateKey.generate()
        else:
            self.ephemeral = x25519.X25519PrivateKey.from_private_bytes(ephemeral)
        self.public_key = raw_public(self.ephemeral)
        self.controller_ltpk = controller_ltpk
        self.controller_public: Optional[bytes] = None
        self.shared_secret: Optional[bytes] = None
        self.session_key: Optional[bytes] = None
        self.finish_error_code = 0
        self.received: List[Dict[int, bytes]] = []

    def accept_start(self, request: bytes) -> None:
        items = parse_tlv(request)
        self.received.append(items)
        self.controller_public = items[PUBLIC_KEY]
        peer = x25519.X25519PublicKey.from_public_bytes(self.controller_public)
        self.shared_secret = self.ephemeral.exchange(peer)
        self.session_key = hkdf_sha512(
            self.shared_secret, b"Pair-Verify-Encrypt-Salt", b"Pair-Verify-Encrypt-Info"
        )

    def accessory_info(self) -> bytes:
        return self.public_key + self.pairing_id + self.controller_public

    def start_response(self, signature: Optional[bytes] = None, sub_tlv: Optional[bytes] = None,
                       public_key: Optional[bytes] = None, include_method: bool = False) -> bytes:
        """Build the start response, with optional overrides for negative tests."""
        if signature is None:
            signature = self.ltsk.sign(self.accessory_info())
        if sub_tlv is None:
            sub_tlv = tlv((USERNAME, self.pairing_id), (SIGNATURE, signature))
        sealed = ChaCha20Poly1305(self.session_key).encrypt(chacha_nonce(b"PV-Msg02"), sub_tlv, None)

        items = []
        if include_method:
            items.append((METHOD, b"\x00"))
        items.append((SEQUENCE, b"\x02"))
        items.append((PUBLIC_KEY, self.public_key if public_key is None else public_key))
        items.append((ENCRYPTED_DATA, sealed))
        return tlv(*items)

    def verify_finish(self, request: bytes) -> Tuple[bytes, bool]:
        """
        Open the finish request and check the controller's signature.

        Returns:
            Tuple of (controller identifier, signature valid)
        """
        items = parse_tlv(request)
        self.received.append(items)
        sealed = items[ENCRYPTED_DATA]
        plaintext = ChaCha20Poly1305(self.session_key).decrypt(chacha_nonce(b"PV-Msg03"), sealed, None)
        sub = parse_tlv(plaintext)
        identifier = sub[USERNAME]
        material = self.controller_public + identifier + self.public_key
        try:
            ed25519.Ed25519PublicKey.from_public_bytes(self.controller_ltpk).verify(sub[SIGNATURE], material)
            return identifier, True
        except InvalidSignature:
            return identifier, False

    def finish_response(self, error_code: int = 0) -> bytes:
        if error_code:
            return tlv((SEQUENCE, b"\x04"), (ERROR_CODE, bytes([error_code])))
        return tlv((SEQUENCE, b"\x04"))

    def control_keys(self) -> Tuple[bytes, bytes]:
        """(read, write) from the controller's point of view."""
        read_key = hkdf_sha512(self.shared_secret, b"Control-Salt", b"Control-Read-Encryption-Key")
        write_key = hkdf_sha512(self.shared_secret, b"Control-Salt", b"Control-Write-Encryption-Key")
        return read_key, write_key

    def exchange(self, request: bytes) -> bytes:
        """Transport callable for perform_pair_verify."""
        seq = parse_tlv(request)[SEQUENCE]
        if seq == b"\x01":
            self.accept_start(request)
            return self.start_response()
        if seq == b"\x03":
            _, valid = self.verify_finish(request)
            return self.finish_response(self.finish_error_code if valid else 0x02)
        raise AssertionError(f"unexpected sequence {seq!r}")


@pytest.fixture
def controller_identity():
    return ControllerIdentity(identifier=CONTROLLER_ID, ltsk=CONTROLLER_LTSK)


@pytest.fixture
def accessory(controller_identity):
    return ReferenceAccessory(controller_ltpk=controller_identity.ltpk)


@pytest.fixture
def identity_store(accessory):
    return InMemoryIdentityStore({ACCESSORY_HANDLE: accessory.ltpk})


@pytest.fixture
def controller(controller_identity, identity_store):
    return create_verify_controller(
        controller_identity, identity_store, ACCESSORY_HANDLE,
        ephemeral_private_key=CONTROLLER_EPHEMERAL
    )


@pytest.fixture
def started(controller, accessory):
    """Controller that sent its start request, and the accessory that received it."""
    accessory.accept_start(controller.initial_request().to_bytes())
    return controller, accessory
