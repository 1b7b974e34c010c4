"""Store-level errors reported by every repository."""


class RepositoryError(Exception):
    """Base class for classified store failures."""
    pass


class NotFound(RepositoryError):
    """A lookup matched no row."""
    pass


class DuplicateKey(RepositoryError):
    """A write violated a uniqueness constraint."""

    def __init__(self, constraint: str = ""):
        super().__init__(f"duplicate key value violates unique constraint {constraint!r}")
        self.constraint = constraint


class EditConflict(RepositoryError):
    """A versioned update found a different version, or no row at all."""
    pass
