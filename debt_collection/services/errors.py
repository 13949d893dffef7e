"""Errors raised by the collection workflow services.

Each carries the HTTP status the API layer answers with.
"""


class WorkflowError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class AuthError(WorkflowError):
    """Missing identity (401) or a role that may not do this (403)."""

    status_code = 401

    @classmethod
    def forbidden(cls, message="Forbidden"):
        return cls(message, status_code=403)


class ValidationError(WorkflowError):
    status_code = 400


class NotFoundError(WorkflowError):
    status_code = 404


class ConflictError(WorkflowError):
    """The report already left PENDING."""

    status_code = 409
