"""
Byte helpers shared by the crypto and protocol layers.

Includes the redaction helper used for logging: public values are only ever
logged as short fingerprints, secret values are never logged at all.
"""

import hashlib


def fingerprint(data: bytes, length: int = 8) -> str:
    """
    Short, non-reversible identifier for a public value.
    
    Args:
        data: Public bytes (e.g. an ephemeral public key)
        length: Number of hex characters to return
        
    Returns:
        Hex prefix of SHA-256(data)
    """
    return hashlib.sha256(data).hexdigest()[:length]


def parse_hex(hex_string: str) -> bytes:
    """
    Parse hexadecimal string to bytes.
    
    Args:
        hex_string: Hex string (with or without separators)
        
    Returns:
        Parsed bytes
    """
    cleaned = hex_string.strip().replace(" ", "").replace(":", "").replace("-", "")
    return bytes.fromhex(cleaned)
