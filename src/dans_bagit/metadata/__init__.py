"""XML metadata documents stored in DANS bags."""

from .dans_files import DANSFiles
from .ddm import DDM
from .dim import DIM
from .xml_document import XMLDocument

__all__ = ["XMLDocument", "DIM", "DDM", "DANSFiles"]
