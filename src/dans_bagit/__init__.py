"""Build, read and segment DANS-formatted BagIt packages."""

from .builder import DANSBagBuilder
from .exceptions import (
    BagError,
    DuplicatePathError,
    FormatError,
    FrozenBagError,
    InvalidEntryError,
    MissingTagFileError,
    NotFinalizedError,
    UsageError,
)
from .metadata import DDM, DIM, DANSFiles
from .reader import DANSBagReader
from .segments import FileSegment, FileSegmentIterator
from .tag_file import TagFile

__all__ = [
    "DANSBagBuilder",
    "DANSBagReader",
    "FileSegment",
    "FileSegmentIterator",
    "TagFile",
    "DIM",
    "DDM",
    "DANSFiles",
    "BagError",
    "UsageError",
    "FrozenBagError",
    "NotFinalizedError",
    "DuplicatePathError",
    "InvalidEntryError",
    "FormatError",
    "MissingTagFileError",
]
