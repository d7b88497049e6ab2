"""DSpace Intermediate Metadata (DIM) documents.

DIM records the dataset and per-data-file metadata stored as
``data/metadata.xml`` and ``data/{ident}/metadata.xml`` in a bag.
"""

import logging

from lxml import etree

from .xml_document import XMLDocument

logger = logging.getLogger(__name__)

DIM_NS = "http://www.dspace.org/xmlns/dspace/dim"


class DIM(XMLDocument):
    """A flat list of schema.element.qualifier fields.

    Example:
        dim = DIM()
        dim.add_dspace_field("dc.contributor.author", "Author A")
        xml = dim.serialize()
    """

    def __init__(self):
        self.fields: list[dict[str, str | None]] = []

    def add_dspace_field(self, field: str, value: str) -> None:
        """Add a field given in dotted form, e.g. ``dc.description.abstract``."""
        bits = field.split(".")
        schema = element = qualifier = None
        if len(bits) >= 2:
            schema, element = bits[0], bits[1]
        if len(bits) == 3:
            qualifier = bits[2]
        self.add_field(schema, element, qualifier, value)

    def add_field(
        self,
        schema: str | None,
        element: str | None,
        qualifier: str | None,
        value: str | None,
    ) -> None:
        self.fields.append(
            {
                "mdschema": schema,
                "element": element,
                "qualifier": qualifier,
                "value": value,
            }
        )

    def get_values(self, field: str) -> list[str]:
        """Return the values recorded for a dotted field name."""
        bits = field.split(".")
        qualifier = bits[2] if len(bits) == 3 else None
        return [
            entry["value"] or ""
            for entry in self.fields
            if [entry["mdschema"], entry["element"]] == bits[:2]
            and entry["qualifier"] == qualifier
        ]

    def to_element(self) -> etree._Element:
        root = etree.Element(f"{{{DIM_NS}}}dim", nsmap={"dim": DIM_NS})
        root.set("dspaceType", "ITEM")

        for entry in self.fields:
            field_el = etree.SubElement(root, f"{{{DIM_NS}}}field")
            for key in ("mdschema", "element", "qualifier"):
                if entry[key] is not None:
                    field_el.set(key, entry[key])
            if entry["value"] is not None:
                field_el.text = entry["value"]

        return root

    @classmethod
    def parse(cls, data: bytes) -> "DIM":
        """Rebuild a DIM document from serialized XML.

        Args:
            data: XML bytes as written into a bag

        Returns:
            DIM with one field per child element of the root
        """
        root = etree.fromstring(data)
        dim = cls()
        for field_el in root:
            if not isinstance(field_el.tag, str):
                continue
            dim.add_field(
                field_el.get("mdschema"),
                field_el.get("element"),
                field_el.get("qualifier"),
                "".join(field_el.itertext()),
            )
        logger.debug(f"Parsed DIM with {len(dim.fields)} fields")
        return dim
