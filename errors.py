# errors.py
"""
Store-level error taxonomy.

Each error carries the message shown to the user and the HTTP status the
API layer answers with. Stores raise these at the point of detection and
never catch them; server.py turns them into JSON responses.
"""
from fastapi import status


class StoreError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(StoreError):
    """A record (order, product, designer, cart item, milestone, portfolio item) is absent."""
    status_code = status.HTTP_404_NOT_FOUND


class UserNotFound(NotFound):
    pass


class NotAuthenticated(StoreError):
    status_code = status.HTTP_401_UNAUTHORIZED


class AccessDenied(StoreError):
    status_code = status.HTTP_403_FORBIDDEN


class ValidationFailure(StoreError):
    status_code = status.HTTP_400_BAD_REQUEST
