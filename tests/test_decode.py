"""
Unit tests for chunk collection and reconstruction

These tests work on chunk bytes directly, bypassing QR rendering and scanning.
"""

import os
import sys
import random
import tempfile
import dataclasses
import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import paperback as pb


TEST_DATA = bytes((i * 131 + 17) % 256 for i in range(1000))
OTHER_DATA = b"A completely different document " * 30


def encode(data=TEST_DATA, config=None, build_tag=pb.BUILD_TAG):
    return pb.encode_document(data, config or pb.PageConfig(), build_tag=build_tag)


def rewrite_shard(chunk, position, value):
    data = bytearray(chunk)
    data[pb.PayloadHeader.LENGTH + position] = value
    return bytes(data)


class TestChunkReassembly:
    """Tests for successful reassembly"""

    def test_reassemble_all_chunks(self):
        document = encode()
        file_data, report = pb.reassemble_chunks(document.chunks + [document.meta_chunk])

        assert file_data == TEST_DATA
        assert report['file_size'] == len(TEST_DATA)
        assert report['found_shards'] == 17
        assert report['original_count'] == 8
        assert report['recovery_count'] == 17
        assert report['identifier'] == document.plan.identifier.hex()

    def test_reassemble_any_minimal_subset(self):
        """Exactly data_shard_count recovery shards are enough"""
        document = encode()
        k = document.plan.data_shard_count

        for start in [0, 4, 9]:
            subset = document.chunks[start:start + k]
            file_data, _ = pb.reassemble_chunks([document.meta_chunk] + subset)
            assert file_data == TEST_DATA, f"subset starting at {start} failed"

    def test_reassemble_random_subset_and_order(self):
        document = encode()
        rng = random.Random(1234)

        for _ in range(3):
            chunks = rng.sample(document.chunks, document.plan.data_shard_count + 2)
            chunks.insert(rng.randrange(len(chunks) + 1), document.meta_chunk)
            file_data, _ = pb.reassemble_chunks(chunks)
            assert file_data == TEST_DATA

    def test_meta_after_payloads(self):
        """Payload chunks seen before the metadata are accepted"""
        document = encode()
        file_data, _ = pb.reassemble_chunks(list(reversed(document.chunks)) + [document.meta_chunk])
        assert file_data == TEST_DATA

    def test_duplicates_ignored(self):
        document = encode()
        chunks = document.chunks + document.chunks[:5] + [document.meta_chunk] * 3

        file_data, report = pb.reassemble_chunks(chunks)
        assert file_data == TEST_DATA
        assert report['duplicate_shards'] == 5
        assert report['chunks'] == len(chunks)

    def test_empty_file(self):
        document = encode(b"")
        file_data, _ = pb.reassemble_chunks(document.chunks + [document.meta_chunk])
        assert file_data == b""

    def test_no_recovery_margin(self):
        config = pb.PageConfig(recovery_factor=pb.RecoveryFactor(percentage=0))
        document = encode(config=config)
        assert len(document.chunks) == document.plan.data_shard_count

        file_data, _ = pb.reassemble_chunks(document.chunks + [document.meta_chunk])
        assert file_data == TEST_DATA

    def test_large_document_with_lost_shards(self):
        """More than 255 data + recovery shards, a tenth of them lost"""
        data = bytes((i * 7919) % 251 for i in range(14000))
        document = encode(data)
        plan = document.plan
        assert plan.data_shard_count + plan.recovery_shard_count > 255

        kept = [chunk for i, chunk in enumerate(document.chunks) if i % 10 != 4]
        file_data, report = pb.reassemble_chunks(kept + [document.meta_chunk])
        assert file_data == data
        assert report['found_shards'] == len(kept)

    def test_thirty_kilobytes_roundtrip(self):
        data = bytes((i * 7919) % 251 for i in range(30000))
        config = pb.PageConfig(recovery_factor=pb.RecoveryFactor(percentage=0))
        document = encode(data, config=config)
        assert document.plan.data_shard_count > 200

        file_data, _ = pb.reassemble_chunks(document.chunks + [document.meta_chunk])
        assert file_data == data

    def test_custom_build_tag(self):
        document = encode(build_tag="paperback custom")
        file_data, _ = pb.reassemble_chunks(document.chunks + [document.meta_chunk],
                                            build_tag="paperback custom")
        assert file_data == TEST_DATA


class TestMissingData:
    """Tests for insufficient input"""

    def test_missing_metadata(self):
        document = encode()
        with pytest.raises(pb.MissingMetadataError):
            pb.reassemble_chunks(document.chunks)

    def test_no_chunks(self):
        with pytest.raises(pb.MissingMetadataError):
            pb.reassemble_chunks([])

    def test_metadata_only(self):
        document = encode()
        with pytest.raises(pb.InsufficientDataError):
            pb.reassemble_chunks([document.meta_chunk])

    def test_one_shard_short(self):
        document = encode()
        k = document.plan.data_shard_count
        with pytest.raises(pb.InsufficientDataError):
            pb.reassemble_chunks([document.meta_chunk] + document.chunks[:k - 1])

    def test_duplicates_do_not_count(self):
        document = encode()
        k = document.plan.data_shard_count
        chunks = [document.meta_chunk] + document.chunks[:k - 1] * 2
        with pytest.raises(pb.InsufficientDataError):
            pb.reassemble_chunks(chunks)


class TestMixedDocumentDetection:
    """Tests for chunks from different documents"""

    def test_payload_from_other_document(self):
        document = encode()
        other = encode(OTHER_DATA)
        chunks = [document.meta_chunk] + document.chunks + [other.chunks[0]]

        with pytest.raises(pb.InconsistentMetadataError):
            pb.reassemble_chunks(chunks)

    def test_payloads_from_two_documents_before_meta(self):
        document = encode()
        other = encode(OTHER_DATA)

        with pytest.raises(pb.InconsistentMetadataError):
            pb.reassemble_chunks([document.chunks[0], other.chunks[1]])

    def test_meta_from_other_document(self):
        """Payloads first, then a metadata chunk of another document"""
        document = encode()
        other = encode(OTHER_DATA)

        with pytest.raises(pb.InconsistentMetadataError):
            pb.reassemble_chunks(document.chunks + [other.meta_chunk])

    def test_two_different_meta_chunks(self):
        document = encode()
        meta, _ = pb.read_header(document.meta_chunk)
        altered = pb.write_header(dataclasses.replace(meta, recovery_count=meta.recovery_count + 1))

        with pytest.raises(pb.InconsistentMetadataError):
            pb.reassemble_chunks([document.meta_chunk, altered] + document.chunks)

    def test_meta_identifier_not_hash_prefix(self):
        document = encode()
        meta, _ = pb.read_header(document.meta_chunk)
        forged = pb.write_header(dataclasses.replace(meta, identifier=b"XXXX"))

        with pytest.raises(pb.InconsistentMetadataError):
            pb.reassemble_chunks([forged] + document.chunks)

    def test_conflicting_duplicate(self):
        document = encode()
        original = document.chunks[3]
        corrupted = rewrite_shard(original, 10, original[pb.PayloadHeader.LENGTH + 10] ^ 0xFF)

        with pytest.raises(pb.DuplicateConflictError):
            pb.reassemble_chunks([document.meta_chunk] + document.chunks + [corrupted])

    def test_shard_index_beyond_metadata(self):
        document = encode()
        header, shard = pb.read_header(document.chunks[0])
        stray = pb.write_header(dataclasses.replace(header, index=document.plan.recovery_shard_count)) + shard

        with pytest.raises(pb.InconsistentMetadataError):
            pb.reassemble_chunks([document.meta_chunk] + document.chunks + [stray])

    def test_shard_wrong_length(self):
        document = encode()
        chunks = [document.meta_chunk, document.chunks[0][:-1]] + document.chunks[1:]

        with pytest.raises(pb.InconsistentMetadataError):
            pb.reassemble_chunks(chunks)

    def test_garbage_chunk(self):
        document = encode()
        with pytest.raises(pb.FormatError):
            pb.reassemble_chunks(document.chunks + [b"\x01"])


class TestIntegrity:
    """Tests for hash verification"""

    def test_corrupted_shard_detected(self):
        """Undetected QR corruption changes the content and fails the hash check"""
        document = encode()
        k = document.plan.data_shard_count
        chunks = list(document.chunks[:k])
        chunks[0] = rewrite_shard(chunks[0], 0, chunks[0][pb.PayloadHeader.LENGTH] ^ 0x01)

        with pytest.raises(pb.ChecksumMismatchError):
            pb.reassemble_chunks([document.meta_chunk] + chunks)

    def test_wrong_build_tag(self):
        document = encode()
        with pytest.raises(pb.ChecksumMismatchError):
            pb.reassemble_chunks(document.chunks + [document.meta_chunk], build_tag="paperback 9.9.9")

    def test_all_errors_are_paperback_errors(self):
        for error in [pb.PlanningError, pb.FormatError, pb.EncodingConfigError,
                      pb.SymbolCapacityError, pb.MissingMetadataError,
                      pb.InconsistentMetadataError, pb.DuplicateConflictError,
                      pb.InsufficientDataError, pb.ChecksumMismatchError,
                      pb.OverwriteRefusedError, pb.ScanError]:
            assert issubclass(error, pb.PaperbackError)
            assert issubclass(error, ValueError)


class TestChunkCollection:
    """Tests for the chunk collection bookkeeping"""

    def test_collect_tracks_identifier(self):
        document = encode()
        collection = pb.collect_chunks(document.chunks[:3])

        assert collection.meta is None
        assert collection.identifier == document.plan.identifier
        assert sorted(collection.shards) == [0, 1, 2]

    def test_collect_meta(self):
        document = encode()
        collection = pb.collect_chunks([document.meta_chunk, document.meta_chunk])

        assert collection.meta == pb.create_meta_header(document.plan)
        assert collection.shards == {}
        assert collection.chunk_count == 2


class TestWriteOutput:
    """Tests for writing restored files"""

    def test_write_new_file(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_file = os.path.join(tmpdir, 'restored.bin')
            pb.write_output(output_file, TEST_DATA)

            with open(output_file, 'rb') as f:
                assert f.read() == TEST_DATA

    def test_refuse_overwrite(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_file = os.path.join(tmpdir, 'restored.bin')
            with open(output_file, 'wb') as f:
                f.write(b"keep me")

            with pytest.raises(pb.OverwriteRefusedError):
                pb.write_output(output_file, TEST_DATA)

            with open(output_file, 'rb') as f:
                assert f.read() == b"keep me"

    def test_force_overwrite(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            output_file = os.path.join(tmpdir, 'restored.bin')
            with open(output_file, 'wb') as f:
                f.write(b"old contents that are longer than new")

            pb.write_output(output_file, b"new", force=True)

            with open(output_file, 'rb') as f:
                assert f.read() == b"new"
