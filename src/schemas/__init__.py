"""Schema definitions for dans-bagit."""

from .bag import BagInfo, BitstreamEntry, BitstreamSource, ContainerEntry, StagedFile
from .request import BagRequest, BitstreamRequest, MetadataField

__all__ = [
    "BagInfo",
    "BagRequest",
    "BitstreamEntry",
    "BitstreamRequest",
    "BitstreamSource",
    "ContainerEntry",
    "MetadataField",
    "StagedFile",
]
