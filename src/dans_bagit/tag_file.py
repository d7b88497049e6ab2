"""Line-oriented tag files mapping bag paths to values.

Every manifest and bitstream tag file in a bag shares one format: one entry
per line, ``value<TAB>path<NEWLINE>``. Entries are written sorted by path so
that the same content always serializes to the same bytes.
"""

from typing import Iterator

from .exceptions import DuplicatePathError, FormatError


class TagFile:
    """An ordered mapping from bag-relative path to a single string value.

    Adding a second value for a path already present raises
    DuplicatePathError rather than overwriting it.

    Example:
        sizes = TagFile()
        sizes.add("data/10.5061_dryad.1/ORIGINAL/file.csv", "1024")
        text = sizes.serialize()
    """

    def __init__(self, entries: dict[str, str] | None = None):
        self._entries: dict[str, str] = {}
        for path, value in (entries or {}).items():
            self.add(path, value)

    def add(self, path: str, value: str) -> None:
        """Add an entry.

        Args:
            path: Bag-relative path
            value: Value recorded for the path

        Raises:
            DuplicatePathError: If the path already has an entry
            ValueError: If the value contains a tab or line break
        """
        if path in self._entries:
            raise DuplicatePathError(path)
        if "\t" in value or "\n" in value or "\r" in value:
            raise ValueError(f"Tag value for {path} may not contain tabs or line breaks")
        self._entries[path] = value

    def get(self, path: str, default: str | None = None) -> str | None:
        return self._entries.get(path, default)

    def has_entries(self) -> bool:
        return len(self._entries) > 0

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[tuple[str, str]]:
        for path in sorted(self._entries):
            yield path, self._entries[path]

    def serialize(self) -> str:
        """Serialize to ``value<TAB>path`` lines, sorted by path."""
        return "".join(f"{value}\t{path}\n" for path, value in self)

    @classmethod
    def parse(cls, text: str) -> "TagFile":
        """Parse tag file text.

        Each line is split on its last tab, so a stray tab inside a value
        does not corrupt the path. Blank lines are ignored.

        Args:
            text: Tag file content

        Returns:
            TagFile holding every entry

        Raises:
            FormatError: If a line has no tab or a path is repeated
        """
        tag_file = cls()
        for line_number, line in enumerate(text.split("\n"), start=1):
            line = line.rstrip("\r")
            if not line:
                continue
            value, sep, path = line.rpartition("\t")
            if not sep:
                raise FormatError(f"Tag file line {line_number} has no tab separator: {line!r}")
            if path in tag_file:
                raise FormatError(f"Tag file line {line_number} repeats path {path}", path=path)
            tag_file._entries[path] = value
        return tag_file
