"""
Utility helpers for the pair-verify client.
"""

from .memory import secure_zero, SecureBytes

__all__ = [
    'secure_zero',
    'SecureBytes'
]
