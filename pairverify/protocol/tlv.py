"""
TLV8 container format used by pair-verify messages.

Each item is encoded as:

item = type (1B) || length (1B) || value (length B)

Values longer than 255 bytes are split into consecutive fragments of the
same type; decoding concatenates consecutive items that share a type.
"""

from enum import IntEnum
from typing import Dict, Iterator, List, Optional, Tuple


MAX_FRAGMENT_SIZE = 255


class TLVType(IntEnum):
    """Item types carried by pair-verify messages."""
    METHOD = 0
    USERNAME = 1
    SALT = 2
    PUBLIC_KEY = 3
    PROOF = 4
    ENCRYPTED_DATA = 5
    SEQUENCE_NUMBER = 6
    ERROR_CODE = 7
    ED25519_SIGNATURE = 10


class TLVFormatError(Exception):
    """Raised when a TLV8 container or one of its items is malformed."""
    pass


class TLV8Container:
    """
    Ordered mapping of TLV8 item type to value.
    
    Setting a type that is already present replaces its value in place, so
    the encoded order is the order in which types were first set.
    """
    
    def __init__(self, items: Optional[List[Tuple[int, bytes]]] = None):
        self._items: Dict[int, bytes] = {}
        for tag, value in items or []:
            self.set_bytes(tag, value)
    
    def __contains__(self, tag: int) -> bool:
        return int(tag) in self._items
    
    def __len__(self) -> int:
        return len(self._items)
    
    def __iter__(self) -> Iterator[Tuple[int, bytes]]:
        return iter(self._items.items())
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, TLV8Container):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())
    
    def __repr__(self) -> str:
        # Values may be sealed payloads or signatures, show sizes only
        fields = ", ".join(f"{_tag_name(tag)}={len(value)}B" for tag, value in self._items.items())
        return f"TLV8Container({fields})"
    
    # Accessors
    
    def get_bytes(self, tag: int) -> Optional[bytes]:
        """Raw value for a type, or None if absent."""
        return self._items.get(int(tag))
    
    def get_byte(self, tag: int) -> Optional[int]:
        """
        Single-byte integer value for a type, or None if absent.
        
        Raises:
            TLVFormatError: If the value is not exactly one byte
        """
        value = self.get_bytes(tag)
        if value is None:
            return None
        if len(value) != 1:
            raise TLVFormatError(f"{_tag_name(tag)} must be 1 byte, got {len(value)}")
        return value[0]
    
    def get_string(self, tag: int) -> Optional[str]:
        """
        UTF-8 string value for a type, or None if absent.
        
        Raises:
            TLVFormatError: If the value is not valid UTF-8
        """
        value = self.get_bytes(tag)
        if value is None:
            return None
        try:
            return value.decode('utf-8')
        except UnicodeDecodeError as e:
            raise TLVFormatError(f"{_tag_name(tag)} is not valid UTF-8") from e
    
    def set_bytes(self, tag: int, value: bytes) -> None:
        if not (0 <= int(tag) <= 255):
            raise ValueError("TLV type must be 0-255")
        self._items[int(tag)] = bytes(value)
    
    def set_byte(self, tag: int, value: int) -> None:
        if not (0 <= value <= 255):
            raise ValueError("Byte value must be 0-255")
        self.set_bytes(tag, bytes([value]))
    
    def set_string(self, tag: int, value: str) -> None:
        self.set_bytes(tag, value.encode('utf-8'))
    
    # Serialization
    
    def to_bytes(self) -> bytes:
        """Serialize container, fragmenting long values."""
        out = bytearray()
        for tag, value in self._items.items():
            if not value:
                out += bytes([tag, 0])
                continue
            for offset in range(0, len(value), MAX_FRAGMENT_SIZE):
                fragment = value[offset:offset + MAX_FRAGMENT_SIZE]
                out += bytes([tag, len(fragment)]) + fragment
        return bytes(out)
    
    @classmethod
    def from_bytes(cls, data: bytes) -> 'TLV8Container':
        """
        Deserialize a container.
        
        Raises:
            TLVFormatError: If an item is truncated or a type repeats
                non-consecutively
        """
        container = cls()
        ptr = 0
        previous_tag = None
        previous_length = None
        
        while ptr < len(data):
            if ptr + 2 > len(data):
                raise TLVFormatError(f"Truncated item header at offset {ptr}")
            
            tag = data[ptr]
            length = data[ptr + 1]
            value = data[ptr + 2:ptr + 2 + length]
            if len(value) != length:
                raise TLVFormatError(
                    f"Truncated {_tag_name(tag)} value: expected {length} bytes, got {len(value)}"
                )
            
            if tag == previous_tag and previous_length == MAX_FRAGMENT_SIZE:
                # Continuation fragment
                container._items[tag] += value
            elif tag in container._items:
                raise TLVFormatError(f"Duplicate {_tag_name(tag)} item")
            else:
                container._items[tag] = bytes(value)
            
            previous_tag = tag
            previous_length = length
            ptr += 2 + length
        
        return container


def _tag_name(tag: int) -> str:
    try:
        return TLVType(tag).name
    except ValueError:
        return f"type {tag}"


def decode(data: bytes) -> TLV8Container:
    """Parse raw bytes into a TLV8 container."""
    return TLV8Container.from_bytes(data)


def encode(items: List[Tuple[int, bytes]]) -> bytes:
    """Serialize (type, value) pairs in order."""
    return TLV8Container(items).to_bytes()
