"""DANS Dataset Metadata (DDM) documents, written as ``metadata/dataset.xml``."""

from lxml import etree

from .xml_document import XMLDocument

DC_NS = "http://purl.org/dc/elements/1.1/"
DCTERMS_NS = "http://purl.org/dc/terms/"
DCX_DAI_NS = "http://easy.dans.knaw.nl/schemas/dcx/dai/"
DDM_NS = "http://easy.dans.knaw.nl/schemas/md/ddm/"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
ID_TYPE_NS = "http://easy.dans.knaw.nl/schemas/vocab/identifier-type/"

NSMAP = {
    "dc": DC_NS,
    "dcterms": DCTERMS_NS,
    "dcx-dai": DCX_DAI_NS,
    "ddm": DDM_NS,
    "xsi": XSI_NS,
    "id-type": ID_TYPE_NS,
}


class DDM(XMLDocument):
    """DDM document with a ``ddm:profile`` and a ``ddm:dcmiMetadata`` section.

    Field and attribute names are prefixed (``dc:title``, ``xsi:type``);
    repeated fields are kept in insertion order.

    Example:
        ddm = DDM()
        ddm.add_profile_field("dc:title", "The Title")
        ddm.add_dcmi_field("dcterms:identifier", "10.4321/main", {"xsi:type": "id-type:DOI"})
    """

    def __init__(self):
        self.profile_fields: dict[str, list[dict]] = {}
        self.dcmi_fields: dict[str, list[dict]] = {}

    def add_profile_field(
        self, field: str, value: str, attrs: dict[str, str] | None = None
    ) -> None:
        self._add_to_register(self.profile_fields, field, value, attrs)

    def add_dcmi_field(
        self, field: str, value: str, attrs: dict[str, str] | None = None
    ) -> None:
        self._add_to_register(self.dcmi_fields, field, value, attrs)

    def to_element(self) -> etree._Element:
        root = etree.Element(f"{{{DDM_NS}}}DDM", nsmap=NSMAP)

        if self.profile_fields:
            profile = etree.SubElement(root, f"{{{DDM_NS}}}profile")
            self._populate(profile, self.profile_fields)

        if self.dcmi_fields:
            dcmi = etree.SubElement(root, f"{{{DDM_NS}}}dcmiMetadata")
            self._populate(dcmi, self.dcmi_fields)

        return root

    def _add_to_register(
        self,
        register: dict[str, list[dict]],
        field: str,
        value: str,
        attrs: dict[str, str] | None,
    ) -> None:
        self._qualify(field)
        for key in attrs or {}:
            self._qualify(key)
        register.setdefault(field, []).append({"value": value, "attrs": dict(attrs or {})})

    def _populate(
        self, parent: etree._Element, register: dict[str, list[dict]]
    ) -> None:
        for field, entries in register.items():
            for entry in entries:
                el = etree.SubElement(parent, self._qualify(field))
                el.text = entry["value"]
                for key, value in entry["attrs"].items():
                    el.set(self._qualify(key), value)

    def _qualify(self, name: str) -> str:
        """Convert ``prefix:local`` to lxml ``{namespace}local`` notation.

        Raises:
            ValueError: If the prefix is not a known DDM namespace
        """
        prefix, sep, local = name.partition(":")
        if not sep:
            return name
        if prefix not in NSMAP:
            raise ValueError(f"Unknown namespace prefix in DDM name: {name}")
        return f"{{{NSMAP[prefix]}}}{local}"
