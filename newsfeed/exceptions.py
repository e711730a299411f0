"""
Domain errors raised by the services and rendered by the exception handler in main.py
"""
from fastapi import status


class NewsfeedError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Internal server error"

    def __init__(self, detail: str = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class NotFoundError(NewsfeedError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class ConflictError(NewsfeedError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict"


class UnauthorizedError(NewsfeedError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized user"


class ForbiddenError(NewsfeedError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You don't have permission to perform this action"


class UpstreamFailureError(NewsfeedError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "An upstream service failed"


class InternalError(NewsfeedError):
    pass
