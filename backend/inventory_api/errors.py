class StoreError(Exception):
    """Base class for failures surfaced by the document store."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(StoreError):
    status_code = 400


class NotFoundError(StoreError):
    status_code = 404

    def __init__(self, backend_id: str):
        super().__init__("not found")
        self.backend_id = backend_id


class PersistenceError(StoreError):
    status_code = 500


class CorruptStoreError(StoreError):
    """The db file exists but is not an object holding an ``items`` array."""

    status_code = 500

    def __init__(self, path, reason: str):
        super().__init__(f"corrupt store file {path}: {reason}")
        self.path = path
        self.reason = reason
