class PaydayError(Exception):
    """Base class for errors raised by the payday package."""


class SchemaError(PaydayError):
    """Persisted blob cannot be read by this version."""


class StorageError(PaydayError):
    """Reading or writing the local storage file failed."""


class ValidationError(PaydayError):
    """A user-supplied value was rejected by the store."""
