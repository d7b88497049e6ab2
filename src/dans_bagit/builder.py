"""DANS Bag Builder for assembling bag zips from bitstreams and metadata.

Bitstreams are staged into a working directory as they are added; the zip is
written in a single pass by ``finalize()``, after which the bag is frozen.
"""

import io
import logging
import shutil
import zipfile
from datetime import datetime
from pathlib import Path
from typing import BinaryIO, Literal

from schemas.bag import BagInfo, BitstreamEntry, StagedFile

from .digests import SUPPORTED_DIGESTS, copy_with_digests, md5_hex
from .exceptions import DuplicatePathError, FrozenBagError, InvalidEntryError, NotFinalizedError
from .metadata import DDM, DIM, DANSFiles
from .paths import (
    BAG_INFO_TXT,
    BAGIT_TXT,
    DATASET_XML,
    DESCRIPTION_TXT,
    FILES_XML,
    FORMAT_TXT,
    IDENT_DATAFILES_TXT,
    MANIFEST_MD5_TXT,
    MANIFEST_SHA1_TXT,
    METADATA_XML,
    SIZE_TXT,
    TAGMANIFEST_MD5_TXT,
    container_path,
    payload_path,
    sanitize_filename,
)
from .segments import FileSegmentIterator
from .tag_file import TagFile

logger = logging.getLogger(__name__)

BAGIT_VERSION = "0.97"
BAGIT_TXT_CONTENT = f"BagIt-Version: {BAGIT_VERSION}\nTag-File-Character-Encoding: UTF-8\n"
DEFAULT_BUNDLE = "ORIGINAL"

BagState = Literal["empty", "staging", "frozen"]

# Characters that would break a tag file line
TAG_VALUE_SEPARATORS = ("\t", "\n", "\r")
RESERVED_COMPONENTS = frozenset({".", ".."})


class DANSBagBuilder:
    """Assemble a DANS-formatted BagIt zip.

    The DANSBagBuilder:
    1. Stages each added bitstream in the working directory, computing its
       MD5 and SHA-1 while copying
    2. Holds the dataset DIM, per-data-file DIMs and the DDM profile
    3. On ``finalize()`` streams every payload file, metadata document and
       tag file into the zip, finishing with ``tagmanifest-md5.txt``

    A builder created over an existing zip is frozen from the start.

    Example:
        builder = DANSBagBuilder("doi:10.5061/dryad.1", Path("bag.zip"), Path("work"))
        with open("data.csv", "rb") as f:
            builder.add_bitstream(f, "data.csv", "text/csv", None, "doi:10.5061/dryad.1/1")
        builder.finalize()
        builder.cleanup_working_dir()
    """

    def __init__(
        self,
        name: str,
        zip_path: Path,
        working_dir: Path,
        is_version_of: str | None = None,
    ):
        """Initialize the builder.

        Args:
            name: Bag name; its sanitized form is the zip root directory
            zip_path: Where the bag zip is (or will be) written
            working_dir: Directory for staging bitstreams
            is_version_of: Identifier of the bag this one supersedes
        """
        self.name = name
        self.base = sanitize_filename(name)
        self.zip_path = Path(zip_path)
        self.working_dir = Path(working_dir)
        self.is_version_of = is_version_of

        self._bitstreams: list[BitstreamEntry] = []
        self._internal_paths: set[str] = set()
        self._idents = TagFile()
        self._dataset_dim: DIM | None = None
        self._datafile_dims: dict[str, DIM] = {}
        self._ddm: DDM | None = None

        self.state: BagState = "frozen" if self.zip_path.exists() else "empty"

    @property
    def bitstreams(self) -> list[BitstreamEntry]:
        return list(self._bitstreams)

    @property
    def zip_name(self) -> str:
        return self.zip_path.name

    def add_bitstream(
        self,
        source: BinaryIO,
        filename: str,
        format: str | None,
        description: str | None,
        data_file_ident: str,
        bundle: str = DEFAULT_BUNDLE,
    ) -> BitstreamEntry:
        """Stage a bitstream for inclusion in the bag.

        Args:
            source: Readable binary stream, consumed to exhaustion
            filename: Filename inside the bag (sanitized)
            format: MIME type
            description: Free-text description
            data_file_ident: Data file the bitstream belongs to
            bundle: Bundle name (e.g., "ORIGINAL")

        Returns:
            The staged BitstreamEntry

        Raises:
            FrozenBagError: If the bag has already been written
            InvalidEntryError: If a value cannot be written to a tag file or a
                location does not fit the bag layout
            DuplicatePathError: If the bitstream or its data file identifier
                collides with one already in the bag
        """
        self._require_mutable()
        _check_tag_value("format", format)
        _check_tag_value("description", description)
        _check_component("filename", filename)
        _check_bundle(bundle)

        internal_path = payload_path(data_file_ident, bundle, filename)
        self._register_ident(data_file_ident)
        if internal_path in self._internal_paths:
            raise DuplicatePathError(internal_path)

        staged_path = self.working_dir / internal_path
        staged_path.parent.mkdir(parents=True, exist_ok=True)
        with staged_path.open("wb") as sink:
            digests = copy_with_digests(source, sink, SUPPORTED_DIGESTS)

        entry = BitstreamEntry(
            filename=sanitize_filename(filename),
            format=format or None,
            description=description or None,
            size=staged_path.stat().st_size,
            md5=digests["md5"],
            sha1=digests["sha1"],
            data_file_ident=data_file_ident,
            bundle=bundle,
            internal_path=internal_path,
            container_path=container_path(self.base, internal_path),
            source=StagedFile(path=staged_path.resolve()),
        )
        self._bitstreams.append(entry)
        self._internal_paths.add(internal_path)
        self.state = "staging"
        logger.debug(f"Staged {internal_path} ({entry.size} bytes, md5 {entry.md5})")
        return entry

    def set_dataset_metadata(self, dim: DIM) -> None:
        """Set the dataset DIM, written as ``data/metadata.xml``."""
        self._require_mutable()
        self._dataset_dim = dim
        self.state = "staging"

    def set_datafile_metadata(self, dim: DIM, data_file_ident: str) -> None:
        """Set the DIM for a data file, replacing any previous one."""
        self._require_mutable()
        self._register_ident(data_file_ident)
        self._datafile_dims[data_file_ident] = dim
        self.state = "staging"

    def set_dataset_profile(self, ddm: DDM) -> None:
        """Set the DDM profile, written as ``metadata/dataset.xml``."""
        self._require_mutable()
        self._ddm = ddm
        self.state = "staging"

    def finalize(self) -> None:
        """Write the bag zip and freeze the bag.

        Raises:
            FrozenBagError: If the bag has already been written
        """
        self._require_mutable()
        logger.info(f"Writing bag {self.base} to {self.zip_path}")

        self.zip_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with zipfile.ZipFile(self.zip_path, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                self._write_bag(zf)
        except BaseException:
            self.zip_path.unlink(missing_ok=True)
            raise

        self.state = "frozen"
        logger.info(
            f"Bag {self.base} written with {len(self._bitstreams)} bitstreams "
            f"({self.zip_path.stat().st_size} bytes)"
        )

    def size(self) -> int:
        """Size of the bag zip in bytes."""
        self._require_container()
        return self.zip_path.stat().st_size

    def md5(self) -> str:
        """MD5 hex digest of the bag zip."""
        self._require_container()
        with self.zip_path.open("rb") as f:
            return md5_hex(f)

    def open(self) -> BinaryIO:
        """Open the bag zip for reading."""
        self._require_container()
        return self.zip_path.open("rb")

    def segments(self, segment_size: int, md5: bool = False) -> FileSegmentIterator:
        """Iterate over the bag zip in fixed-size segments.

        The iterator holds the zip open until it is closed; use it as a
        context manager or call ``close()`` when done.

        Example:
            with builder.segments(10 * 1024 * 1024, md5=True) as segments:
                for segment in segments:
                    deposit(segment.read(), segment.md5)
        """
        self._require_container()
        return FileSegmentIterator(self.zip_path, segment_size, md5=md5)

    def cleanup_working_dir(self) -> None:
        """Remove the working directory; a missing directory is not an error."""
        if self.working_dir.exists():
            shutil.rmtree(self.working_dir)
            logger.debug(f"Removed working directory {self.working_dir}")

    def cleanup_zip(self) -> None:
        """Remove the bag zip; a missing zip is not an error."""
        self.zip_path.unlink(missing_ok=True)

    def _require_mutable(self) -> None:
        if self.state == "frozen" or self.zip_path.exists():
            raise FrozenBagError()

    def _require_container(self) -> None:
        if not self.zip_path.exists():
            raise NotFinalizedError()

    def _register_ident(self, data_file_ident: str) -> None:
        """Record the data file directory for an identifier.

        Raises:
            InvalidEntryError: If the identifier has no usable directory name
            DuplicatePathError: If a different identifier already sanitizes
                to the same directory
        """
        _check_component("data file identifier", data_file_ident)
        _check_tag_value("data file identifier", data_file_ident)
        ident_path = payload_path(data_file_ident)
        existing = self._idents.get(ident_path)
        if existing is None:
            self._idents.add(ident_path, data_file_ident)
        elif existing != data_file_ident:
            raise DuplicatePathError(
                ident_path,
                f"Data file identifiers {existing!r} and {data_file_ident!r} "
                f"both map to {ident_path}",
            )

    def _write_bag(self, zf: zipfile.ZipFile) -> None:
        """Write every entry of the bag in layout order."""
        descriptions = TagFile()
        formats = TagFile()
        sizes = TagFile()
        manifest_md5 = TagFile()
        manifest_sha1 = TagFile()
        tagmanifest = TagFile()
        dans_files = DANSFiles()

        def record_payload(path: str, digests: dict[str, str]) -> None:
            manifest_md5.add(path, digests["md5"])
            manifest_sha1.add(path, digests["sha1"])

        # payload bitstreams
        for entry in self._bitstreams:
            with entry.open() as source:
                digests = self._write_entry(zf, entry.internal_path, source, entry.size)
            if digests["md5"] != entry.md5:
                logger.warning(
                    f"Staged copy of {entry.internal_path} changed since it was added"
                )
            record_payload(entry.internal_path, digests)

            if entry.description:
                descriptions.add(entry.internal_path, entry.description)
                dans_files.add_file_metadata(entry.internal_path, "dc:description", entry.description)
            if entry.format:
                formats.add(entry.internal_path, entry.format)
                dans_files.add_file_metadata(entry.internal_path, "dc:format", entry.format)
            sizes.add(entry.internal_path, str(entry.size))
            dans_files.add_file_metadata(entry.internal_path, "dcterms:extent", str(entry.size))
            dans_files.add_file_metadata(entry.internal_path, "premis:messageDigestAlgorithm", "MD5")
            dans_files.add_file_metadata(entry.internal_path, "premis:messageDigest", digests["md5"])

        # dataset DIM
        if self._dataset_dim is not None:
            path = payload_path(filename=METADATA_XML)
            record_payload(path, self._write_bytes(zf, path, self._dataset_dim.serialize()))

        # data file DIMs
        for ident in sorted(self._datafile_dims):
            path = payload_path(ident, filename=METADATA_XML)
            record_payload(path, self._write_bytes(zf, path, self._datafile_dims[ident].serialize()))

        # DANS metadata documents
        if self._ddm is not None:
            digests = self._write_bytes(zf, DATASET_XML, self._ddm.serialize())
            tagmanifest.add(DATASET_XML, digests["md5"])
        digests = self._write_bytes(zf, FILES_XML, dans_files.serialize())
        tagmanifest.add(FILES_XML, digests["md5"])

        # tag files; the identifier map is mandatory for loading, so it is
        # always written
        tag_tables = [
            (DESCRIPTION_TXT, descriptions),
            (FORMAT_TXT, formats),
            (SIZE_TXT, sizes),
            (MANIFEST_MD5_TXT, manifest_md5),
            (MANIFEST_SHA1_TXT, manifest_sha1),
            (IDENT_DATAFILES_TXT, self._idents),
        ]
        for name, table in tag_tables:
            if not table.has_entries() and name != IDENT_DATAFILES_TXT:
                continue
            digests = self._write_text(zf, name, table.serialize())
            tagmanifest.add(name, digests["md5"])

        digests = self._write_text(zf, BAGIT_TXT, BAGIT_TXT_CONTENT)
        tagmanifest.add(BAGIT_TXT, digests["md5"])

        bag_info = BagInfo(
            created=datetime.now().astimezone().isoformat(timespec="seconds"),
            is_version_of=self.is_version_of,
        )
        digests = self._write_text(zf, BAG_INFO_TXT, bag_info.to_text())
        tagmanifest.add(BAG_INFO_TXT, digests["md5"])

        self._write_text(zf, TAGMANIFEST_MD5_TXT, tagmanifest.serialize())

    def _write_entry(
        self,
        zf: zipfile.ZipFile,
        relative: str,
        source: BinaryIO,
        size: int = 0,
    ) -> dict[str, str]:
        """Stream a source into the zip, returning the digests of what was written."""
        name = container_path(self.base, relative)
        with zf.open(name, "w", force_zip64=size >= zipfile.ZIP64_LIMIT) as sink:
            digests = copy_with_digests(source, sink, SUPPORTED_DIGESTS)
        logger.debug(f"Wrote {name}")
        return digests

    def _write_bytes(self, zf: zipfile.ZipFile, relative: str, data: bytes) -> dict[str, str]:
        return self._write_entry(zf, relative, io.BytesIO(data), len(data))

    def _write_text(self, zf: zipfile.ZipFile, relative: str, text: str) -> dict[str, str]:
        return self._write_bytes(zf, relative, text.encode("utf-8"))


def _check_tag_value(field: str, value: str | None) -> None:
    if value and any(sep in value for sep in TAG_VALUE_SEPARATORS):
        raise InvalidEntryError(field, value, "tabs and line breaks cannot be stored in a tag file")


def _check_component(field: str, value: str | None) -> None:
    """Reject values that do not sanitize to a single path segment."""
    if not isinstance(value, str) or not value:
        raise InvalidEntryError(field, value, "must be a non-empty string")
    if sanitize_filename(value) in RESERVED_COMPONENTS:
        raise InvalidEntryError(field, value, "is a relative path reference")


def _check_bundle(bundle: str | None) -> None:
    """Bundles are used unsanitized, so they must already be a single path segment."""
    if not isinstance(bundle, str) or not bundle:
        raise InvalidEntryError("bundle", bundle, "must be a non-empty string")
    if "/" in bundle or any(sep in bundle for sep in TAG_VALUE_SEPARATORS):
        raise InvalidEntryError("bundle", bundle, "may not contain '/', tabs or line breaks")
    if bundle in RESERVED_COMPONENTS:
        raise InvalidEntryError("bundle", bundle, "is a relative path reference")
