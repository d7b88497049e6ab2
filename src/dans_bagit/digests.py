"""Single-pass stream copying with checksum computation."""

import hashlib
from typing import BinaryIO, Iterable

BLOCK_SIZE = 8192
SUPPORTED_DIGESTS = ("md5", "sha1")


def copy_with_digests(
    source: BinaryIO,
    sink: BinaryIO | None = None,
    kinds: Iterable[str] = SUPPORTED_DIGESTS,
    block_size: int = BLOCK_SIZE,
) -> dict[str, str]:
    """Copy a stream while computing one or more digests in the same pass.

    Every block read from the source is fed to each digest before it is
    written to the sink. With no sink the source is only digested.

    Args:
        source: Readable binary stream, consumed to exhaustion
        sink: Optional writable binary stream
        kinds: Digest algorithms to compute ("md5", "sha1")
        block_size: Number of bytes to read per block

    Returns:
        Dict mapping each requested digest kind to its hex string

    Raises:
        ValueError: If an unsupported digest kind is requested
    """
    hashes = {}
    for kind in kinds:
        if kind not in SUPPORTED_DIGESTS:
            raise ValueError(f"Unsupported digest algorithm: {kind}")
        hashes[kind] = hashlib.new(kind)

    while True:
        block = source.read(block_size)
        if not block:
            break
        for digest in hashes.values():
            digest.update(block)
        if sink is not None:
            sink.write(block)

    return {kind: digest.hexdigest() for kind, digest in hashes.items()}


def md5_hex(source: BinaryIO) -> str:
    """Compute the MD5 hex digest of a stream."""
    return copy_with_digests(source, kinds=("md5",))["md5"]
