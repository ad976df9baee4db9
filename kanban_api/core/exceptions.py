"""
Domain exceptions for the Kanban Board API

Services raise these, the handlers registered in ``kanban_api.main`` turn them
into ``{"success": false, "message": ...}`` responses.
"""
from fastapi import status


class KanbanError(Exception):
    """Base class for errors that map to a client-visible response"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFoundError(KanbanError):
    """Referenced board, list, task or user does not exist"""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str = "Resource", resource_id=None):
        message = f"{resource} not found"
        if resource_id is not None:
            message = f"{resource} not found with id of {resource_id}"
        super().__init__(message)


class ForbiddenError(KanbanError):
    """Actor lacks owner/member standing on the board"""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class InvalidOperationError(KanbanError):
    status_code = status.HTTP_400_BAD_REQUEST


class ValidationError(KanbanError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Validation failed", field: str = None):
        self.field = field
        super().__init__(message)
