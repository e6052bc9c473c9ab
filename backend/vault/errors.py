"""Error taxonomy.

Services raise these instead of HTTPException; the handler registered in
main.py turns them into plain-text responses. ``message`` is what the client
sees, the chained ``__cause__`` is what gets logged.
"""


class VaultError(Exception):
    status_code = 500
    default_message = "Server Error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ClientInputError(VaultError):
    """The request is missing something we need (e.g. the upload field)."""
    status_code = 400
    default_message = "Bad request."


class NotFoundError(VaultError):
    """No file record exists to act on."""
    status_code = 404
    default_message = "Not found."


class StorageIOError(VaultError):
    """Disk read, write or delete failed."""


class MetadataStoreError(VaultError):
    """Connection or query failure in the metadata store."""
