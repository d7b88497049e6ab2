"""Tests for single-pass digest copying."""

import hashlib
import io

import pytest

from dans_bagit.digests import copy_with_digests, md5_hex


class TestCopyWithDigests:
    """Tests for copy_with_digests()."""

    def test_copies_and_digests(self):
        """Sink receives every byte and both digests match."""
        data = b"hello world" * 5000
        sink = io.BytesIO()

        digests = copy_with_digests(io.BytesIO(data), sink)

        assert sink.getvalue() == data
        assert digests == {
            "md5": hashlib.md5(data).hexdigest(),
            "sha1": hashlib.sha1(data).hexdigest(),
        }

    def test_without_sink(self):
        """Digest-only mode consumes the source without writing anywhere."""
        source = io.BytesIO(b"abc" * 10000)

        digests = copy_with_digests(source, kinds=("md5",))

        assert digests == {"md5": hashlib.md5(b"abc" * 10000).hexdigest()}
        assert source.read() == b""

    def test_small_block_size(self):
        """Digests do not depend on the block size."""
        data = bytes(range(256)) * 7
        digests = copy_with_digests(io.BytesIO(data), block_size=3)
        assert digests["sha1"] == hashlib.sha1(data).hexdigest()

    def test_empty_source(self):
        digests = copy_with_digests(io.BytesIO(b""), io.BytesIO())
        assert digests["md5"] == hashlib.md5(b"").hexdigest()

    def test_unsupported_digest(self):
        with pytest.raises(ValueError, match="sha256"):
            copy_with_digests(io.BytesIO(b"x"), kinds=("sha256",))


class TestMd5Hex:
    """Tests for md5_hex()."""

    def test_md5_hex(self):
        assert md5_hex(io.BytesIO(b"hello world")) == hashlib.md5(b"hello world").hexdigest()
