"""Path layout for DANS bags.

Maps data file identifiers, bundles and filenames to the paths used inside
the bag zip. Every path inside the zip uses forward slashes.

Layout::

    <root>/
    ├── bagit.txt
    ├── bag-info.txt
    ├── bitstream-description.txt
    ├── bitstream-format.txt
    ├── bitstream-size.txt
    ├── manifest-md5.txt
    ├── manifest-sha1.txt
    ├── ident-datafiles.txt
    ├── tagmanifest-md5.txt
    ├── metadata/
    │   ├── dataset.xml
    │   └── files.xml
    └── data/
        ├── metadata.xml
        └── {data file ident}/
            ├── metadata.xml
            └── {bundle}/
                └── {filename}
"""

import re

DATA_DIR = "data"
METADATA_DIR = "metadata"
METADATA_XML = "metadata.xml"

BAGIT_TXT = "bagit.txt"
BAG_INFO_TXT = "bag-info.txt"
DESCRIPTION_TXT = "bitstream-description.txt"
FORMAT_TXT = "bitstream-format.txt"
SIZE_TXT = "bitstream-size.txt"
MANIFEST_MD5_TXT = "manifest-md5.txt"
MANIFEST_SHA1_TXT = "manifest-sha1.txt"
IDENT_DATAFILES_TXT = "ident-datafiles.txt"
TAGMANIFEST_MD5_TXT = "tagmanifest-md5.txt"
DATASET_XML = f"{METADATA_DIR}/dataset.xml"
FILES_XML = f"{METADATA_DIR}/files.xml"

TAG_FILES = frozenset(
    {
        BAGIT_TXT,
        BAG_INFO_TXT,
        DESCRIPTION_TXT,
        FORMAT_TXT,
        SIZE_TXT,
        MANIFEST_MD5_TXT,
        MANIFEST_SHA1_TXT,
        IDENT_DATAFILES_TXT,
        TAGMANIFEST_MD5_TXT,
        DATASET_XML,
        FILES_XML,
    }
)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def sanitize_filename(name: str) -> str:
    """Replace every character outside ``[A-Za-z0-9._-]`` with ``_``."""
    return _UNSAFE_CHARS.sub("_", name)


def payload_path(
    data_file_ident: str | None = None,
    bundle: str | None = None,
    filename: str | None = None,
    in_data: bool = True,
) -> str:
    """Build a bag-relative path for payload content.

    Args:
        data_file_ident: Data file identifier (sanitized before use)
        bundle: Bundle name (used as given)
        filename: Filename (sanitized before use)
        in_data: Whether to prefix the path with ``data/``

    Returns:
        Relative path such as ``data/10.5061_dryad.1/ORIGINAL/file.csv``
    """
    parts = [DATA_DIR] if in_data else []
    if data_file_ident:
        parts.append(sanitize_filename(data_file_ident))
    if bundle:
        parts.append(bundle)
    if filename:
        parts.append(sanitize_filename(filename))
    return "/".join(parts)


def metadata_path(filename: str) -> str:
    """Build the bag-relative path for a descriptive metadata document."""
    return f"{METADATA_DIR}/{sanitize_filename(filename)}"


def container_path(root_name: str, relative: str) -> str:
    """Prefix a bag-relative path with the sanitized bag root."""
    return f"{sanitize_filename(root_name)}/{relative}"
