"""
Secure memory handling for pair-verify key material.

Shared secrets and derived keys live in SecureBytes so they can be zeroed
as soon as a handshake aborts or its session is closed.
"""

from typing import Union


def secure_zero(data: Union[bytearray, memoryview]) -> None:
    """
    Overwrite a mutable buffer with zeros.
    
    Args:
        data: Memory to zero (must be mutable)
    """
    if isinstance(data, (bytearray, memoryview)):
        for i in range(len(data)):
            data[i] = 0
    else:
        raise TypeError("Data must be bytearray or memoryview")


class SecureBytes:
    """
    A container for sensitive byte data that zeros itself on deletion.
    """
    
    def __init__(self, data: bytes):
        self._data = bytearray(data)
        self._is_valid = True
    
    def __len__(self) -> int:
        if not self._is_valid:
            raise ValueError("SecureBytes has been cleared")
        return len(self._data)
    
    def __bytes__(self) -> bytes:
        """Get a copy of the stored data as bytes."""
        if not self._is_valid:
            raise ValueError("SecureBytes has been cleared")
        return bytes(self._data)
    
    def __repr__(self) -> str:
        # Never expose the contents
        state = "cleared" if not self._is_valid else f"{len(self._data)} bytes"
        return f"<SecureBytes {state}>"
    
    def __del__(self):
        self.clear()
    
    def clear(self) -> None:
        """Explicitly clear the stored data."""
        if getattr(self, "_is_valid", False):
            secure_zero(self._data)
            self._is_valid = False
    
    def is_cleared(self) -> bool:
        """Check if the SecureBytes has been cleared."""
        return not self._is_valid
