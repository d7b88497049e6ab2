"""Custom exceptions for building and reading bags."""


class BagError(Exception):
    """Base exception for all bag errors."""

    def __init__(self, message: str, *args, **kwargs):
        self.message = message
        super().__init__(message, *args, **kwargs)


class UsageError(BagError):
    """Raised when a bag operation is called out of sequence."""

    pass


class FrozenBagError(UsageError):
    """Raised when a mutator or finalize is called on a frozen bag."""

    def __init__(self, message: str = "Bag has already been written and cannot be modified"):
        super().__init__(message)


class NotFinalizedError(UsageError):
    """Raised when the zip is requested before it has been written."""

    def __init__(self, message: str = "Bag zip does not exist; finalize the bag first"):
        super().__init__(message)


class DuplicatePathError(UsageError):
    """Raised when two entries would occupy the same path."""

    def __init__(self, path: str, message: str | None = None):
        self.path = path
        super().__init__(message or f"Duplicate entry for path: {path}")


class InvalidEntryError(UsageError):
    """Raised when a bitstream or identifier cannot be placed in the bag layout."""

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class FormatError(BagError):
    """Raised when a bag zip is corrupt or not in the DANS layout."""

    def __init__(self, message: str, path: str | None = None, *args, **kwargs):
        self.path = path
        super().__init__(message, *args, **kwargs)


class MissingTagFileError(FormatError):
    """Raised when a mandatory tag file is absent from a bag."""

    def __init__(self, tag_file: str):
        self.tag_file = tag_file
        super().__init__(f"Bag is missing mandatory tag file {tag_file}", path=tag_file)
