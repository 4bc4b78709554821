"""
TLV8 container tests.
"""

import pytest

from pairverify.protocol.tlv import TLV8Container, TLVFormatError, TLVType, decode, encode


class TestEncoding:
    """Test container serialization."""
    
    def test_item_layout(self):
        """Test type, length and value layout in insertion order."""
        container = TLV8Container()
        container.set_byte(TLVType.SEQUENCE_NUMBER, 1)
        container.set_bytes(TLVType.PUBLIC_KEY, b"\xaa\xbb")
        
        assert container.to_bytes() == b"\x06\x01\x01\x03\x02\xaa\xbb"
    
    def test_replace_keeps_position(self):
        """Test that setting an existing type replaces it in place."""
        container = TLV8Container()
        container.set_byte(TLVType.METHOD, 0)
        container.set_byte(TLVType.SEQUENCE_NUMBER, 1)
        container.set_byte(TLVType.METHOD, 5)
        
        assert container.to_bytes() == b"\x00\x01\x05\x06\x01\x01"
    
    def test_empty_value(self):
        """Test that an empty value is encoded with zero length."""
        assert encode([(TLVType.USERNAME, b"")]) == b"\x01\x00"
    
    def test_long_value_fragmented(self):
        """Test that values over 255 bytes are split into fragments."""
        value = bytes(range(256)) + b"\x01" * 44
        data = encode([(TLVType.ENCRYPTED_DATA, value)])
        
        assert data[:2] == b"\x05\xff"
        assert data[257:259] == b"\x05\x2d"
        assert len(data) == 2 + 255 + 2 + 45
        assert decode(data).get_bytes(TLVType.ENCRYPTED_DATA) == value
    
    def test_string_is_utf8(self):
        """Test that strings are stored as UTF-8."""
        container = TLV8Container()
        container.set_string(TLVType.USERNAME, "ctrl-é")
        
        assert container.get_bytes(TLVType.USERNAME) == "ctrl-é".encode('utf-8')
        assert container.get_string(TLVType.USERNAME) == "ctrl-é"
    
    def test_byte_range(self):
        """Test that byte values must fit in one byte."""
        with pytest.raises(ValueError):
            TLV8Container().set_byte(TLVType.METHOD, 256)


class TestDecoding:
    """Test container parsing."""
    
    def test_absent_fields(self):
        """Test that absent fields read as None."""
        container = decode(b"\x06\x01\x02")
        
        assert container.get_byte(TLVType.SEQUENCE_NUMBER) == 2
        assert container.get_byte(TLVType.METHOD) is None
        assert container.get_bytes(TLVType.PUBLIC_KEY) is None
        assert container.get_string(TLVType.USERNAME) is None
        assert TLVType.METHOD not in container
        assert len(container) == 1
    
    def test_truncated_header(self):
        """Test that a lone type byte is rejected."""
        with pytest.raises(TLVFormatError):
            decode(b"\x06\x01\x02\x03")
    
    def test_truncated_value(self):
        """Test that a value shorter than its length is rejected."""
        with pytest.raises(TLVFormatError):
            decode(b"\x03\x20" + b"\x00" * 10)
    
    def test_duplicate_type(self):
        """Test that a repeated type that is not a continuation is rejected."""
        with pytest.raises(TLVFormatError):
            decode(b"\x06\x01\x02\x03\x01\x00\x06\x01\x04")
    
    def test_byte_field_length(self):
        """Test that a byte field must be exactly one byte."""
        container = decode(b"\x06\x02\x01\x02")
        
        with pytest.raises(TLVFormatError):
            container.get_byte(TLVType.SEQUENCE_NUMBER)
    
    def test_invalid_utf8(self):
        """Test that invalid UTF-8 strings are rejected."""
        container = decode(b"\x01\x02\xff\xfe")
        
        with pytest.raises(TLVFormatError):
            container.get_string(TLVType.USERNAME)
    
    def test_repr_hides_values(self):
        """Test that the representation shows sizes, not contents."""
        container = decode(b"\x03\x04\xde\xad\xbe\xef")
        
        assert "PUBLIC_KEY=4B" in repr(container)
        assert "dead" not in repr(container)
