"""Error taxonomy shared by the store, codecs and controllers."""


class PastaboxError(Exception):
    """Base class for all application errors."""


class ConfigError(PastaboxError):
    """Invalid startup configuration."""


class ValidationError(PastaboxError):
    """A submitted value was rejected; callers recover and continue."""


class UnsafeFilename(ValidationError):
    pass


class CapacityError(PastaboxError):
    """No free identifier could be allocated."""


class StorageIOError(PastaboxError):
    """Writing an attachment or the persisted store failed."""


class CorruptStoreError(StorageIOError):
    """The persisted store exists but cannot be read back."""


class PastaNotFound(PastaboxError):
    """The pasta is missing, expired or burned out."""


class InvalidSlug(PastaNotFound):
    pass
