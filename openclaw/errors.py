"""
Error taxonomy for the service.

Every error carries a stable ``code`` and the HTTP status it maps to. The
exception message is for server logs; clients only ever see the code (and,
for 4xx classes, a message written by us, never driver text).
"""


class OpenclawError(Exception):
    code = "internal_error"
    status_code = 500
    expose_message = False
    retryable = False


class ValidationError(OpenclawError):
    """A value outside its closed set or otherwise malformed input."""

    code = "validation_error"
    status_code = 400
    expose_message = True


class Unauthorized(OpenclawError):
    code = "unauthorized"
    status_code = 401


class NotFound(OpenclawError):
    code = "not_found"
    status_code = 404
    expose_message = True


class ForeignKeyViolation(OpenclawError):
    """An artifact referenced a run that does not exist."""

    code = "foreign_key_violation"
    status_code = 409
    expose_message = True


class InvalidTransition(OpenclawError):
    """A status change outside queued -> running -> {succeeded, failed}."""

    code = "invalid_transition"
    status_code = 409
    expose_message = True


class AdminDisabled(OpenclawError):
    """No admin token is configured, so admin routes refuse everything."""

    code = "admin_disabled"
    status_code = 500


class StorageUnavailable(OpenclawError):
    """The database or the object store is unreachable or erroring."""

    code = "storage_unavailable"
    status_code = 500


class StorageTimeout(StorageUnavailable):
    """A database or object-store call exceeded its timeout."""

    code = "storage_timeout"
    status_code = 503
    retryable = True
