"""Base class for XML metadata documents stored in a bag."""

from abc import ABC, abstractmethod

from lxml import etree


class XMLDocument(ABC):
    """Abstract base class for metadata documents.

    Subclasses build an lxml element tree; serialization to bytes is shared.
    """

    @abstractmethod
    def to_element(self) -> etree._Element:
        """Build the root element of the document.

        Returns:
            Root lxml element
        """
        pass

    def serialize(self) -> bytes:
        """Serialize the document to UTF-8 XML bytes."""
        return etree.tostring(
            self.to_element(),
            xml_declaration=True,
            encoding="UTF-8",
            pretty_print=True,
        )
