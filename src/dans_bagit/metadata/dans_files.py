"""DANS file inventory document, written as ``metadata/files.xml``."""

import logging

from lxml import etree

from .xml_document import XMLDocument

logger = logging.getLogger(__name__)

DC_NS = "http://purl.org/dc/elements/1.1/"
DCTERMS_NS = "http://purl.org/dc/terms/"
PREMIS_NS = "http://www.loc.gov/standards/premis"

NSMAP = {
    "dcterms": DCTERMS_NS,
    "dc": DC_NS,
    "premis": PREMIS_NS,
}


class DANSFiles(XMLDocument):
    """Per-file descriptive metadata for every bitstream in a bag.

    Fields are prefixed names (``dc:format``, ``dcterms:extent``,
    ``premis:messageDigest``); fields with any other prefix are skipped
    when the document is built.
    """

    def __init__(self):
        self.metadata: dict[str, dict[str, str]] = {}

    def add_file_metadata(self, path: str, field: str, value: str) -> None:
        self.metadata.setdefault(path, {})[field] = value

    def to_element(self) -> etree._Element:
        root = etree.Element("files", nsmap=NSMAP)

        for path in sorted(self.metadata):
            file_el = etree.SubElement(root, "file")
            file_el.set("filepath", path)
            for field, value in self.metadata[path].items():
                prefix, _, local = field.partition(":")
                namespace = NSMAP.get(prefix)
                if namespace is None or not local:
                    logger.debug(f"Skipping field {field} for {path}: unknown namespace")
                    continue
                field_el = etree.SubElement(file_el, f"{{{namespace}}}{local}")
                field_el.text = value

        return root
