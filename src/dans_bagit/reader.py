"""DANS Bag Reader for loading existing bag zips.

Rebuilds the logical content of a bag (dataset metadata, per-data-file
metadata and the bitstream index) from a single scan of the zip. Bitstream
content is not read until a caller opens it.
"""

import logging
import re
import shutil
import zipfile
from pathlib import Path
from typing import Literal

from lxml import etree

from schemas.bag import BagInfo, BitstreamEntry, ContainerEntry

from .digests import copy_with_digests
from .exceptions import FormatError, MissingTagFileError, NotFinalizedError, UsageError
from .metadata import DIM
from .paths import (
    BAG_INFO_TXT,
    DESCRIPTION_TXT,
    FORMAT_TXT,
    IDENT_DATAFILES_TXT,
    MANIFEST_MD5_TXT,
    MANIFEST_SHA1_TXT,
    METADATA_XML,
    SIZE_TXT,
    TAG_FILES,
    payload_path,
)
from .tag_file import TagFile

logger = logging.getLogger(__name__)

# Bag-relative entry patterns. Each matches a different number of segments
# below data/ (or none), so no entry can match more than one of them.
DATASET_METADATA_PATTERN = re.compile(r"^data/metadata\.xml$")
DATAFILE_METADATA_PATTERN = re.compile(r"^data/(?P<ident>[^/]+)/metadata\.xml$")
PAYLOAD_PATTERN = re.compile(r"^data/(?P<ident>[^/]+)/(?P<bundle>[^/]+)/(?P<filename>[^/]+)$")

EntryKind = Literal["dataset_metadata", "datafile_metadata", "tag_file", "payload"]


def classify_entry(relative: str) -> tuple[EntryKind, re.Match | None]:
    """Classify a bag-relative entry path.

    Args:
        relative: Path inside the bag root, e.g. ``data/ident/ORIGINAL/file.txt``

    Returns:
        Tuple of kind ("dataset_metadata", "datafile_metadata", "tag_file"
        or "payload") and the regex match, if any

    Raises:
        FormatError: If the path does not fit the DANS bag layout
    """
    if relative in TAG_FILES:
        return "tag_file", None
    if match := DATASET_METADATA_PATTERN.match(relative):
        return "dataset_metadata", match
    if match := DATAFILE_METADATA_PATTERN.match(relative):
        return "datafile_metadata", match
    if match := PAYLOAD_PATTERN.match(relative):
        return "payload", match
    raise FormatError(f"Unexpected entry in bag: {relative}", path=relative)


class DANSBagReader:
    """Read a DANS-formatted BagIt zip.

    The bag is loaded on construction if the zip exists. Loading either
    produces the complete model or raises; digests are not re-verified
    against the manifests.

    Example:
        reader = DANSBagReader(Path("bag.zip"))
        for ident in reader.list_data_files():
            for bundle in reader.list_bundles(ident):
                for entry in reader.list_bitstreams(ident, bundle):
                    with entry.open() as f:
                        content = f.read()
    """

    def __init__(self, zip_path: Path, working_dir: Path | None = None):
        """Initialize the reader.

        Args:
            zip_path: Path to the bag zip
            working_dir: Directory for extracted bitstreams (optional)
        """
        self.zip_path = Path(zip_path)
        self.working_dir = Path(working_dir) if working_dir is not None else None

        self.name: str | None = None
        self.bag_info: BagInfo | None = None
        self._bitstreams: list[BitstreamEntry] = []
        self._dataset_dim: DIM | None = None
        self._datafile_dims: dict[str, DIM] = {}
        self._tag_files: dict[str, bytes] = {}
        self.loaded = False

        if self.zip_path.exists():
            self.load()

    @property
    def zip_name(self) -> str:
        return self.zip_path.name

    @property
    def bitstreams(self) -> list[BitstreamEntry]:
        self._require_loaded()
        return list(self._bitstreams)

    def load(self) -> None:
        """Scan the zip and rebuild the bag model.

        Raises:
            NotFinalizedError: If the zip does not exist
            FormatError: If the zip is not a valid DANS bag
        """
        if not self.zip_path.exists():
            raise NotFinalizedError(f"Bag zip not found: {self.zip_path}")
        logger.info(f"Loading bag from {self.zip_path}")

        root = None
        dataset_xml: bytes | None = None
        datafile_xml: dict[str, bytes] = {}
        tag_files: dict[str, bytes] = {}
        payloads: list[tuple[re.Match, zipfile.ZipInfo]] = []

        try:
            zf = zipfile.ZipFile(self.zip_path)
        except zipfile.BadZipFile as e:
            raise FormatError(f"Not a zip file: {self.zip_path}: {e}") from e

        with zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                entry_root, sep, relative = info.filename.partition("/")
                if not sep:
                    raise FormatError(
                        f"Entry outside the bag root directory: {info.filename}",
                        path=info.filename,
                    )
                if root is None:
                    root = entry_root
                elif entry_root != root:
                    raise FormatError(
                        f"Entry {info.filename} is not under bag root {root}",
                        path=info.filename,
                    )

                kind, match = classify_entry(relative)
                if kind == "tag_file":
                    tag_files[relative] = zf.read(info)
                elif kind == "dataset_metadata":
                    dataset_xml = zf.read(info)
                elif kind == "datafile_metadata":
                    datafile_xml[match.group("ident")] = zf.read(info)
                else:
                    payloads.append((match, info))

        if IDENT_DATAFILES_TXT not in tag_files:
            raise MissingTagFileError(IDENT_DATAFILES_TXT)
        idents = self._parse_tag_file(tag_files, IDENT_DATAFILES_TXT)
        descriptions = self._parse_tag_file(tag_files, DESCRIPTION_TXT)
        formats = self._parse_tag_file(tag_files, FORMAT_TXT)
        sizes = self._parse_tag_file(tag_files, SIZE_TXT)
        manifest_md5 = self._parse_tag_file(tag_files, MANIFEST_MD5_TXT)
        manifest_sha1 = self._parse_tag_file(tag_files, MANIFEST_SHA1_TXT)

        def resolve(sanitized: str) -> str:
            ident = idents.get(payload_path(sanitized))
            if ident is None:
                raise FormatError(
                    f"No data file identifier recorded for data/{sanitized}",
                    path=f"data/{sanitized}",
                )
            return ident

        datafile_dims = {
            resolve(sanitized): self._parse_dim(data, payload_path(sanitized, filename=METADATA_XML))
            for sanitized, data in datafile_xml.items()
        }
        dataset_dim = None
        if dataset_xml is not None:
            dataset_dim = self._parse_dim(dataset_xml, payload_path(filename=METADATA_XML))

        bitstreams = []
        for match, info in payloads:
            relative = match.group(0)
            bitstreams.append(
                BitstreamEntry(
                    filename=match.group("filename"),
                    format=formats.get(relative),
                    description=descriptions.get(relative),
                    size=self._declared_size(sizes, relative, info),
                    md5=manifest_md5.get(relative),
                    sha1=manifest_sha1.get(relative),
                    data_file_ident=resolve(match.group("ident")),
                    bundle=match.group("bundle"),
                    internal_path=relative,
                    container_path=info.filename,
                    source=ContainerEntry(
                        container=self.zip_path.resolve(), entry_name=info.filename
                    ),
                )
            )

        bag_info = None
        if BAG_INFO_TXT in tag_files:
            bag_info = BagInfo.parse(tag_files[BAG_INFO_TXT].decode("utf-8"))

        self.name = root
        self.bag_info = bag_info
        self._bitstreams = bitstreams
        self._dataset_dim = dataset_dim
        self._datafile_dims = datafile_dims
        self._tag_files = tag_files
        self.loaded = True
        logger.info(
            f"Loaded bag {root} with {len(bitstreams)} bitstreams "
            f"across {len(self.list_data_files())} data files"
        )

    def list_data_files(self) -> list[str]:
        """Return the identifiers of every data file in the bag."""
        self._require_loaded()
        idents = {entry.data_file_ident for entry in self._bitstreams}
        idents.update(self._datafile_dims)
        return sorted(idents)

    def list_bundles(self, data_file_ident: str) -> list[str]:
        self._require_loaded()
        return sorted(
            {e.bundle for e in self._bitstreams if e.data_file_ident == data_file_ident}
        )

    def list_bitstreams(self, data_file_ident: str, bundle: str) -> list[BitstreamEntry]:
        self._require_loaded()
        return sorted(
            (
                e
                for e in self._bitstreams
                if e.data_file_ident == data_file_ident and e.bundle == bundle
            ),
            key=lambda e: e.filename,
        )

    def get_dataset_metadata(self) -> DIM | None:
        self._require_loaded()
        return self._dataset_dim

    def get_datafile_metadata(self, data_file_ident: str) -> DIM | None:
        self._require_loaded()
        return self._datafile_dims.get(data_file_ident)

    def get_tag_file(self, name: str) -> bytes | None:
        """Return the raw content of a tag file or DANS metadata document.

        Args:
            name: Bag-relative name, e.g. ``manifest-md5.txt`` or
                  ``metadata/dataset.xml``
        """
        self._require_loaded()
        return self._tag_files.get(name)

    def extract(self, entry: BitstreamEntry) -> Path:
        """Copy a bitstream out of the zip into the working directory.

        Args:
            entry: Bitstream from this bag

        Returns:
            Path of the extracted file

        Raises:
            UsageError: If the reader has no working directory
        """
        self._require_loaded()
        if self.working_dir is None:
            raise UsageError("No working directory configured for extraction")

        target = self.working_dir / entry.internal_path
        target.parent.mkdir(parents=True, exist_ok=True)
        with entry.open() as source, target.open("wb") as sink:
            digests = copy_with_digests(source, sink, ("md5",))
        logger.debug(f"Extracted {entry.internal_path} (md5 {digests['md5']})")
        return target

    def cleanup_working_dir(self) -> None:
        """Remove the working directory; a missing directory is not an error."""
        if self.working_dir is not None and self.working_dir.exists():
            shutil.rmtree(self.working_dir)

    def _require_loaded(self) -> None:
        if not self.loaded:
            raise NotFinalizedError(f"Bag zip not loaded: {self.zip_path}")

    def _declared_size(self, sizes: TagFile, relative: str, info: zipfile.ZipInfo) -> int:
        """Size from the size table, or the stored entry size if it has none."""
        declared = sizes.get(relative)
        if declared is None:
            return info.file_size
        try:
            return int(declared)
        except ValueError as e:
            raise FormatError(
                f"Malformed size {declared!r} for {relative} in {SIZE_TXT}", path=SIZE_TXT
            ) from e

    def _parse_dim(self, data: bytes, path: str) -> DIM:
        try:
            return DIM.parse(data)
        except etree.XMLSyntaxError as e:
            raise FormatError(f"Malformed metadata document {path}: {e}", path=path) from e

    def _parse_tag_file(self, tag_files: dict[str, bytes], name: str) -> TagFile:
        data = tag_files.get(name)
        if data is None:
            return TagFile()
        try:
            return TagFile.parse(data.decode("utf-8"))
        except FormatError as e:
            raise FormatError(f"Malformed tag file {name}: {e.message}", path=name) from e
