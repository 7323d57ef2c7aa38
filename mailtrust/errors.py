# mailtrust/errors.py


class MailtrustError(Exception):
    """Base class for errors surfaced to callers of the scoring core."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(MailtrustError):
    """Malformed email/domain or a missing required field."""

    status_code = 400


class NotFoundError(MailtrustError):
    status_code = 404


class ConflictError(MailtrustError):
    """Duplicate temp-domain add."""

    status_code = 409


class ForbiddenError(ConflictError):
    """Edit or delete of a builtin temp-domain entry."""

    status_code = 403


class CapacityError(MailtrustError):
    """Caller has fewer API calls remaining than the operation costs."""

    status_code = 403
