"""
Unit tests for the chunk header protocol

Covers the binary layout of payload and metadata headers.
"""

import os
import sys
import hashlib
import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import paperback as pb


def make_meta(**overrides):
    fields = dict(
        identifier=b'\x01\x02\x03\x04',
        document_hash=b'\x01\x02\x03\x04' + bytes(range(60)),
        original_count=79,
        recovery_count=124,
        shard_bytes=128,
    )
    fields.update(overrides)
    return pb.MetaHeader(**fields)


class TestPayloadHeader:
    """Tests for payload chunk headers"""

    def test_payload_header_layout(self):
        """Index is a little-endian u16 followed by the identifier"""
        header = pb.PayloadHeader(index=3, identifier=b'ABCD')
        assert pb.write_header(header) == b'\x03\x00ABCD'

    def test_payload_header_length(self):
        header = pb.PayloadHeader(index=0x1234, identifier=b'WXYZ')
        data = pb.write_header(header)
        assert len(data) == pb.PayloadHeader.LENGTH == 6
        assert data[:2] == b'\x34\x12'

    def test_payload_read_returns_shard(self):
        """Bytes after the header are returned untouched"""
        chunk = b'\x07\x00ABCD' + b'shard bytes'
        header, remainder = pb.read_header(chunk)

        assert header == pb.PayloadHeader(index=7, identifier=b'ABCD')
        assert remainder == b'shard bytes'

    def test_payload_roundtrip_boundary_indices(self):
        for index in [0, 1, 0xFFFE]:
            header = pb.PayloadHeader(index=index, identifier=b'\xff\xff\xff\xff')
            parsed, remainder = pb.read_header(pb.write_header(header))
            assert parsed == header
            assert remainder == b''

    def test_reserved_index_rejected(self):
        """0xFFFF marks metadata and cannot be used by a payload"""
        with pytest.raises(pb.FormatError):
            pb.write_header(pb.PayloadHeader(index=pb.META_INDEX, identifier=b'ABCD'))

    def test_index_out_of_range_rejected(self):
        with pytest.raises(pb.FormatError):
            pb.write_header(pb.PayloadHeader(index=0x10000, identifier=b'ABCD'))
        with pytest.raises(pb.FormatError):
            pb.write_header(pb.PayloadHeader(index=-1, identifier=b'ABCD'))

    def test_wrong_identifier_length_rejected(self):
        with pytest.raises(pb.FormatError):
            pb.write_header(pb.PayloadHeader(index=0, identifier=b'ABC'))


class TestMetaHeader:
    """Tests for metadata chunk headers"""

    def test_meta_header_layout(self):
        meta = make_meta()
        data = pb.write_header(meta)

        assert len(data) == pb.MetaHeader.LENGTH == 82
        assert data[0:2] == b'\xff\xff'
        assert data[2:6] == meta.identifier
        assert data[6:70] == meta.document_hash
        assert data[70:72] == (79).to_bytes(2, 'little')
        assert data[72:74] == (124).to_bytes(2, 'little')
        assert data[74:82] == (128).to_bytes(8, 'little')

    def test_meta_roundtrip(self):
        meta = make_meta()
        parsed, remainder = pb.read_header(pb.write_header(meta))
        assert parsed == meta
        assert isinstance(parsed, pb.MetaHeader)
        assert remainder == b''

    def test_meta_with_real_hash(self):
        digest = hashlib.sha512(b'content').digest()
        meta = make_meta(identifier=digest[:4], document_hash=digest)
        parsed, _ = pb.read_header(pb.write_header(meta))
        assert parsed.document_hash == digest

    def test_meta_count_overflow_rejected(self):
        """Shard counts are 16-bit on the wire"""
        with pytest.raises(pb.FormatError):
            pb.write_header(make_meta(original_count=70000))
        with pytest.raises(pb.FormatError):
            pb.write_header(make_meta(recovery_count=65536))

    def test_meta_wrong_hash_length_rejected(self):
        with pytest.raises(pb.FormatError):
            pb.write_header(make_meta(document_hash=b'\x01\x02\x03\x04' * 4))

    def test_unsupported_header_type(self):
        with pytest.raises(TypeError):
            pb.write_header(b'not a header')


class TestTruncatedHeaders:
    """Tests for chunks too short to hold their header"""

    def test_empty_chunk(self):
        with pytest.raises(pb.FormatError):
            pb.read_header(b'')

    def test_single_byte(self):
        with pytest.raises(pb.FormatError):
            pb.read_header(b'\x00')

    def test_truncated_payload(self):
        with pytest.raises(pb.FormatError):
            pb.read_header(b'\x01\x00AB')

    def test_truncated_meta(self):
        data = pb.write_header(make_meta())
        with pytest.raises(pb.FormatError):
            pb.read_header(data[:-1])

    def test_format_error_is_value_error(self):
        """Callers catching ValueError also see protocol errors"""
        with pytest.raises(ValueError):
            pb.read_header(b'\x00')
