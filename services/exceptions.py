# services/exceptions.py
"""
Errors raised by the service layer.

Each carries the HTTP status the API reports it with; main.py registers a
single handler for ServiceError. None of them is retried automatically.
"""


class ServiceError(Exception):
     status_code = 500

     def __init__(self, message: str):
          super().__init__(message)
          self.message = message


class ValidationError(ServiceError):
     """Missing or malformed input."""
     status_code = 400


class ForbiddenError(ServiceError):
     """Role or ownership mismatch."""
     status_code = 403


class NotFoundError(ServiceError):
     """A referenced record does not exist."""
     status_code = 404

     def __init__(self, entity: str, message: str = None):
          super().__init__(message or f"{entity} not found")
          self.entity = entity


class ConflictError(ServiceError):
     """The request is valid but the current state does not allow it."""
     status_code = 409
