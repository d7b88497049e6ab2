"""Pytest fixtures for dans-bagit tests."""

import io
import zipfile

import pytest

from dans_bagit.builder import DANSBagBuilder
from dans_bagit.metadata import DDM, DIM


@pytest.fixture
def bag_paths(tmp_path):
    """Zip and working directory locations for a test bag."""
    return {
        "zip": tmp_path / "testmakebag.zip",
        "working": tmp_path / "working" / "testmakebag",
    }


@pytest.fixture
def builder(bag_paths):
    """An empty builder for a bag named "testbag"."""
    return DANSBagBuilder("testbag", bag_paths["zip"], bag_paths["working"])


@pytest.fixture
def sample_dataset_dim():
    dim = DIM()
    dim.add_dspace_field("dc.contributor.author", "Author 1")
    dim.add_dspace_field("dc.contributor.author", "Author 2")
    dim.add_dspace_field("dc.identifier", "10.1234/ident/a")
    return dim


@pytest.fixture
def sample_datafile_dim():
    dim = DIM()
    dim.add_dspace_field("dc.contributor.author", "Author A")
    dim.add_dspace_field("dc.identifier", "10.1234/ident/1")
    return dim


@pytest.fixture
def sample_ddm():
    ddm = DDM()
    ddm.add_profile_field("dc:title", "The Title")
    ddm.add_profile_field("dc:creator", "Creator 1")
    ddm.add_profile_field("dc:creator", "Creator 2")
    ddm.add_dcmi_field("dcterms:hasPart", "10.1234/ident")
    ddm.add_dcmi_field("dcterms:identifier", "10.4321/main", {"xsi:type": "id-type:DOI"})
    return ddm


@pytest.fixture
def populated_builder(builder, sample_dataset_dim, sample_datafile_dim, sample_ddm):
    """A builder staged with two data files, metadata and a DDM profile."""
    builder.add_bitstream(
        io.BytesIO(b"hello world"),
        "myfile.txt",
        "text/plain",
        "greeting",
        "10.x/1",
        "ORIGINAL",
    )
    builder.add_bitstream(
        io.BytesIO(b"a,b\n1,2\n"),
        "table.csv",
        "text/csv",
        None,
        "10.x/1",
        "TEXT",
    )
    builder.add_bitstream(
        io.BytesIO(b"\x00\x01\x02" * 1000),
        "raw data.bin",
        None,
        "binary blob",
        "10.x/2",
        "ORIGINAL",
    )
    builder.set_dataset_metadata(sample_dataset_dim)
    builder.set_datafile_metadata(sample_datafile_dim, "10.x/1")
    builder.set_dataset_profile(sample_ddm)
    return builder


@pytest.fixture
def finalized_bag(populated_builder):
    """Path to a finished bag zip."""
    populated_builder.finalize()
    return populated_builder.zip_path


@pytest.fixture
def make_zip(tmp_path):
    """Factory writing a zip that contains exactly the given entries."""

    def _make_zip(entries: dict[str, bytes], name: str = "handmade.zip"):
        path = tmp_path / name
        with zipfile.ZipFile(path, "w") as zf:
            for entry_name, data in entries.items():
                zf.writestr(entry_name, data)
        return path

    return _make_zip
