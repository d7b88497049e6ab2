"""Bag content schemas.

A bitstream in a bag is backed either by a file staged in the builder's
working directory (while the bag is being assembled) or by an entry in an
existing bag zip (once the bag has been loaded). Both sources expose the
same ``open()`` capability, so callers never care which one they hold.
"""

import zipfile
from pathlib import Path
from typing import Annotated, BinaryIO, Literal

from pydantic import BaseModel, Field


class StagedFile(BaseModel):
    """Bitstream content held in the builder's working directory.

    Attributes:
        path: Absolute path of the staged copy
    """

    kind: Literal["staged"] = "staged"
    path: Path

    model_config = {"frozen": True}

    def open(self) -> BinaryIO:
        return self.path.open("rb")


class ContainerEntry(BaseModel):
    """Bitstream content held inside an existing bag zip.

    Nothing is read until ``open()`` is called, and every call returns a new
    stream positioned at offset zero.

    Attributes:
        container: Path to the bag zip
        entry_name: Full name of the entry inside the zip
    """

    kind: Literal["container"] = "container"
    container: Path
    entry_name: str

    model_config = {"frozen": True}

    def open(self) -> BinaryIO:
        # The entry stream keeps its own reference to the zip file handle.
        with zipfile.ZipFile(self.container) as zf:
            return zf.open(self.entry_name)


BitstreamSource = Annotated[StagedFile | ContainerEntry, Field(discriminator="kind")]


class BitstreamEntry(BaseModel):
    """A payload file in a bag.

    Size and digests are measured when the entry is created and never change.

    Attributes:
        filename: Sanitized filename
        format: MIME type (optional)
        description: Free-text description (optional)
        size: Size in bytes
        md5: MD5 hex digest
        sha1: SHA-1 hex digest
        data_file_ident: Original (unsanitized) data file identifier
        bundle: Bundle name (e.g., "ORIGINAL")
        internal_path: Path relative to the bag root (``data/...``)
        container_path: Full entry name inside the zip
        source: Where the content can be read from
    """

    filename: str
    format: str | None = None
    description: str | None = None
    size: int
    md5: str | None = None
    sha1: str | None = None
    data_file_ident: str
    bundle: str
    internal_path: str
    container_path: str
    source: BitstreamSource

    model_config = {"frozen": True}

    def open(self) -> BinaryIO:
        """Open a fresh read stream over the bitstream content."""
        return self.source.open()


class BagInfo(BaseModel):
    """Contents of ``bag-info.txt``.

    Attributes:
        created: Creation timestamp (ISO 8601)
        is_version_of: Identifier of the bag this one supersedes
    """

    created: str | None = None
    is_version_of: str | None = None

    def to_text(self) -> str:
        lines = []
        if self.created is not None:
            lines.append(f"Created: {self.created}")
        if self.is_version_of is not None:
            lines.append(f"Is-Version-Of: {self.is_version_of}")
        return "".join(f"{line}\n" for line in lines)

    @classmethod
    def parse(cls, text: str) -> "BagInfo":
        """Parse ``Label: value`` lines; unknown labels are ignored."""
        values = {}
        for line in text.splitlines():
            label, sep, value = line.partition(":")
            if not sep:
                continue
            values[label.strip()] = value.strip()
        return cls(
            created=values.get("Created"),
            is_version_of=values.get("Is-Version-Of"),
        )
