"""Exception taxonomy for catalog validation and ingestion.

Every error raised by the core derives from :class:`CatalogError` and carries
the HTTP status the transport layer reports it with.
"""


class CatalogError(Exception):
    status_code = 500


class UserError(CatalogError):
    """Caller-correctable input problem; nothing was changed."""

    status_code = 400


class CorruptedStateError(CatalogError):
    """The content-addressing invariant is already broken in the catalog."""

    status_code = 409


class NeedsBootstrapError(CatalogError):
    """Catalog and filesystem disagree; run a reconciliation scan."""

    status_code = 409


class ContentIntegrityError(CatalogError):
    """A hash is already known with a different size."""

    status_code = 422

    def __init__(self, xxhash64: str, known_size: int, declared_size: int) -> None:
        self.xxhash64 = xxhash64
        self.known_size = known_size
        self.declared_size = declared_size
        super().__init__(
            f"Hash {xxhash64} is stored with size {known_size} "
            f"but was declared with size {declared_size}"
        )


class DuplicateContentError(CatalogError):
    """A concurrent ingest created the same row first."""

    status_code = 304


class ModHasDiskFilenameError(CatalogError):
    status_code = 409

    def __init__(self, mod_id: int | None) -> None:
        self.mod_id = mod_id
        super().__init__("Cannot mark mod as lost forever when disk_filename is set")


class ManifestError(CatalogError):
    """The package manifest could not be read or parsed."""

    status_code = 422


class StorageError(CatalogError):
    pass
