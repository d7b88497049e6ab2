"""Tests for DIM, DDM and DANSFiles metadata documents."""

import pytest
from lxml import etree

from dans_bagit.metadata import DDM, DIM, DANSFiles
from dans_bagit.metadata.dans_files import DC_NS, DCTERMS_NS, PREMIS_NS
from dans_bagit.metadata.ddm import DDM_NS, XSI_NS
from dans_bagit.metadata.dim import DIM_NS


def _parse(data: bytes) -> etree._Element:
    return etree.fromstring(data)


class TestDIM:
    """Tests for DIM documents."""

    def test_add_dspace_field_splits_name(self):
        dim = DIM()
        dim.add_dspace_field("dc.description.abstract", "An abstract")
        dim.add_dspace_field("dc.title", "Title")

        assert dim.fields == [
            {"mdschema": "dc", "element": "description", "qualifier": "abstract", "value": "An abstract"},
            {"mdschema": "dc", "element": "title", "qualifier": None, "value": "Title"},
        ]

    def test_serialize(self):
        dim = DIM()
        dim.add_dspace_field("dc.contributor.author", "Author A")
        dim.add_dspace_field("dc.title", "Title")

        data = dim.serialize()
        root = _parse(data)

        assert data.startswith(b"<?xml")
        assert root.tag == f"{{{DIM_NS}}}dim"
        assert root.get("dspaceType") == "ITEM"
        fields = root.findall(f"{{{DIM_NS}}}field")
        assert len(fields) == 2
        assert fields[0].get("mdschema") == "dc"
        assert fields[0].get("element") == "contributor"
        assert fields[0].get("qualifier") == "author"
        assert fields[0].text == "Author A"
        assert fields[1].get("qualifier") is None

    def test_parse_round_trip(self):
        dim = DIM()
        dim.add_dspace_field("dc.contributor.author", "Author A")
        dim.add_dspace_field("dc.contributor.author", "Author B")
        dim.add_dspace_field("dc.identifier", "10.1234/ident/1")

        parsed = DIM.parse(dim.serialize())

        assert parsed.fields == dim.fields
        assert parsed.get_values("dc.contributor.author") == ["Author A", "Author B"]
        assert parsed.get_values("dc.identifier") == ["10.1234/ident/1"]
        assert parsed.get_values("dc.title") == []

    def test_escapes_markup_in_values(self):
        dim = DIM()
        dim.add_dspace_field("dc.title", "Fish & <Chips>")
        assert DIM.parse(dim.serialize()).get_values("dc.title") == ["Fish & <Chips>"]

    def test_parse_invalid_xml(self):
        with pytest.raises(etree.XMLSyntaxError):
            DIM.parse(b"<dim:dim")


class TestDDM:
    """Tests for DDM documents."""

    def test_sections(self):
        ddm = DDM()
        ddm.add_profile_field("dc:title", "The Title")
        ddm.add_profile_field("dc:creator", "Creator 1")
        ddm.add_profile_field("dc:creator", "Creator 2")
        ddm.add_dcmi_field("dcterms:identifier", "10.4321/main", {"xsi:type": "id-type:DOI"})

        root = _parse(ddm.serialize())

        assert root.tag == f"{{{DDM_NS}}}DDM"
        profile = root.find(f"{{{DDM_NS}}}profile")
        creators = profile.findall("{http://purl.org/dc/elements/1.1/}creator")
        assert [c.text for c in creators] == ["Creator 1", "Creator 2"]

        identifier = root.find(f"{{{DDM_NS}}}dcmiMetadata/{{http://purl.org/dc/terms/}}identifier")
        assert identifier.text == "10.4321/main"
        assert identifier.get(f"{{{XSI_NS}}}type") == "id-type:DOI"

    def test_empty_sections_omitted(self):
        ddm = DDM()
        ddm.add_profile_field("dc:title", "Only profile")

        root = _parse(ddm.serialize())

        assert root.find(f"{{{DDM_NS}}}profile") is not None
        assert root.find(f"{{{DDM_NS}}}dcmiMetadata") is None

    def test_unknown_prefix_rejected(self):
        with pytest.raises(ValueError, match="foo:bar"):
            DDM().add_profile_field("foo:bar", "value")


class TestDANSFiles:
    """Tests for the files.xml inventory."""

    def test_file_entries(self):
        files = DANSFiles()
        files.add_file_metadata("data/b/ORIGINAL/f.txt", "dc:format", "text/plain")
        files.add_file_metadata("data/b/ORIGINAL/f.txt", "dcterms:extent", "11")
        files.add_file_metadata("data/b/ORIGINAL/f.txt", "premis:messageDigest", "abc")
        files.add_file_metadata("data/a/ORIGINAL/g.txt", "dc:description", "first")

        root = _parse(files.serialize())
        entries = root.findall("file")

        assert [e.get("filepath") for e in entries] == [
            "data/a/ORIGINAL/g.txt",
            "data/b/ORIGINAL/f.txt",
        ]
        assert entries[0].find(f"{{{DC_NS}}}description").text == "first"
        assert entries[1].find(f"{{{DC_NS}}}format").text == "text/plain"
        assert entries[1].find(f"{{{DCTERMS_NS}}}extent").text == "11"
        assert entries[1].find(f"{{{PREMIS_NS}}}messageDigest").text == "abc"

    def test_unknown_namespace_skipped(self):
        files = DANSFiles()
        files.add_file_metadata("data/a/ORIGINAL/f", "custom:field", "x")

        entry = _parse(files.serialize()).find("file")

        assert entry is not None
        assert len(entry) == 0

    def test_empty_inventory(self):
        root = _parse(DANSFiles().serialize())
        assert root.tag == "files"
        assert len(root) == 0
