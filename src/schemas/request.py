"""Bag build request schemas.

A build request is a JSON document describing everything that goes into a
bag: dataset metadata, per-data-file metadata and the bitstreams to include.
Bitstream paths are resolved relative to the request file.

Example request::

    {
      "name": "doi:10.5061/dryad.1234",
      "dataset_metadata": [{"field": "dc.title", "value": "My Dataset"}],
      "profile": [{"field": "dc:title", "value": "My Dataset"}],
      "data_files": {
        "doi:10.5061/dryad.1234/1": [{"field": "dc.title", "value": "Data"}]
      },
      "bitstreams": [
        {
          "path": "files/data.csv",
          "format": "text/csv",
          "data_file_ident": "doi:10.5061/dryad.1234/1"
        }
      ]
    }
"""

from pydantic import BaseModel


class MetadataField(BaseModel):
    """A single metadata field.

    Attributes:
        field: Field name (dotted for DIM, prefixed for DDM)
        value: Field value
        attrs: Prefixed XML attributes (DDM only)
    """

    field: str
    value: str
    attrs: dict[str, str] = {}


class BitstreamRequest(BaseModel):
    """A file on disk to add to the bag.

    Attributes:
        path: Path to the source file, relative to the request file
        filename: Name inside the bag (defaults to the source file name)
        format: MIME type
        description: Free-text description
        data_file_ident: Data file the bitstream belongs to
        bundle: Bundle name
    """

    path: str
    filename: str | None = None
    format: str | None = None
    description: str | None = None
    data_file_ident: str
    bundle: str = "ORIGINAL"


class BagRequest(BaseModel):
    """Everything needed to build one bag.

    Attributes:
        name: Bag name (sanitized into the zip root directory)
        is_version_of: Identifier of a predecessor bag
        dataset_metadata: DIM fields for ``data/metadata.xml``
        profile: DDM profile fields for ``metadata/dataset.xml``
        dcmi: DDM dcmiMetadata fields for ``metadata/dataset.xml``
        data_files: DIM fields per data file identifier
        bitstreams: Files to include in the payload
    """

    name: str
    is_version_of: str | None = None
    dataset_metadata: list[MetadataField] = []
    profile: list[MetadataField] = []
    dcmi: list[MetadataField] = []
    data_files: dict[str, list[MetadataField]] = {}
    bitstreams: list[BitstreamRequest] = []
