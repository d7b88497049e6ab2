"""Tests for FileSegment and FileSegmentIterator."""

import hashlib
import io

import pytest

from dans_bagit.segments import FileSegment, FileSegmentIterator


@pytest.fixture
def blob(tmp_path):
    """A 1000-byte file with non-repeating content."""
    path = tmp_path / "blob.zip"
    path.write_bytes(bytes(i % 251 for i in range(1000)))
    return path


class TestFileSegment:
    """Tests for bounded segment streams."""

    def test_reads_stop_at_boundary(self):
        source = io.BytesIO(b"0123456789")
        segment = FileSegment(source, 2, 5)

        assert segment.read() == b"23456"
        assert segment.read() == b""

    def test_partial_reads(self):
        segment = FileSegment(io.BytesIO(b"0123456789"), 4, 4)

        assert segment.read(3) == b"456"
        assert segment.tell() == 3
        assert segment.read(3) == b"7"

    def test_seek(self):
        segment = FileSegment(io.BytesIO(b"0123456789"), 2, 6)

        segment.seek(-2, io.SEEK_END)
        assert segment.read() == b"67"
        segment.seek(1)
        segment.seek(1, io.SEEK_CUR)
        assert segment.read(1) == b"4"

    def test_negative_seek_rejected(self):
        segment = FileSegment(io.BytesIO(b"0123"), 0, 4)
        with pytest.raises(ValueError):
            segment.seek(-1)

    def test_shared_handle_interleaving(self):
        """Two segments over one handle do not disturb each other."""
        source = io.BytesIO(b"aaaabbbb")
        first = FileSegment(source, 0, 4)
        second = FileSegment(source, 4, 4)

        assert first.read(2) == b"aa"
        assert second.read(2) == b"bb"
        assert first.read() == b"aa"
        assert second.read() == b"bb"


class TestFileSegmentIterator:
    """Tests for FileSegmentIterator."""

    def test_segment_lengths_and_digests(self, blob):
        content = blob.read_bytes()

        with FileSegmentIterator(blob, 300, md5=True) as segments:
            result = [(segment.length, segment.md5, segment.read()) for segment in segments]

        assert [length for length, _, _ in result] == [300, 300, 300, 100]
        for i, (_, md5, data) in enumerate(result):
            expected = content[i * 300 : (i + 1) * 300]
            assert data == expected
            assert md5 == hashlib.md5(expected).hexdigest()

    @pytest.mark.parametrize("segment_size", [1, 7, 100, 333, 999, 1000, 1001, 5000])
    def test_reassembly(self, blob, segment_size):
        with FileSegmentIterator(blob, segment_size) as segments:
            joined = b"".join(segment.read() for segment in segments)

        assert joined == blob.read_bytes()

    def test_segment_count(self, blob):
        with FileSegmentIterator(blob, 250) as segments:
            assert len(list(segments)) == 4
        with FileSegmentIterator(blob, 1000) as segments:
            assert len(list(segments)) == 1

    def test_md5_off_by_default(self, blob):
        with FileSegmentIterator(blob, 300) as segments:
            assert all(segment.md5 is None for segment in segments)

    def test_digest_available_before_read(self, blob):
        """The digest is attached without consuming the returned stream."""
        with FileSegmentIterator(blob, 400, md5=True) as segments:
            segment = next(segments)
            assert segment.md5 == hashlib.md5(blob.read_bytes()[:400]).hexdigest()
            assert segment.tell() == 0
            assert len(segment.read()) == 400

    def test_pointer_advances_without_reading(self, blob):
        """Unread segments do not shift the next segment's offset."""
        with FileSegmentIterator(blob, 300) as segments:
            segments.next()
            segments.next()
            third = segments.next()

            assert third.offset == 600
            assert third.index == 2
            assert segments.pointer == 900

    def test_out_of_order_consumption(self, blob):
        content = blob.read_bytes()

        with FileSegmentIterator(blob, 300) as segments:
            collected = list(segments)
            for segment in reversed(collected):
                start = segment.index * 300
                assert segment.read() == content[start : start + 300]

    def test_has_next_and_exhaustion(self, blob):
        with FileSegmentIterator(blob, 600) as segments:
            assert segments.has_next()
            segments.next()
            assert segments.has_next()
            segments.next()
            assert not segments.has_next()
            with pytest.raises(StopIteration):
                segments.next()

    def test_reset(self, blob):
        with FileSegmentIterator(blob, 300) as segments:
            first_pass = [segment.read() for segment in segments]
            segments.reset()
            second_pass = [segment.read() for segment in segments]

        assert first_pass == second_pass
        assert len(first_pass) == 4

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.zip"
        path.write_bytes(b"")

        with FileSegmentIterator(path, 10) as segments:
            assert list(segments) == []

    @pytest.mark.parametrize("segment_size", [0, -1])
    def test_non_positive_size_rejected(self, blob, segment_size):
        with pytest.raises(ValueError, match="segment_size"):
            FileSegmentIterator(blob, segment_size)
