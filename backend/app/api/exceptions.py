"""Standard HTTP exceptions for common cases."""
from typing import Optional
from fastapi import HTTPException, status


def not_found(resource: str = "Resource", resource_id: Optional[int] = None) -> HTTPException:
    """
    Return 404 Not Found exception.

    Args:
        resource: Name of the resource that wasn't found
        resource_id: Optional ID of the resource

    Returns:
        HTTPException with 404 status code

    Examples:
        raise not_found("Project", 123)  # "Project with ID 123 not found"
        raise not_found("Member")        # "Member not found"
    """
    detail = f"{resource} not found"
    if resource_id:
        detail = f"{resource} with ID {resource_id} not found"
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail
    )


def forbidden(message: str = "Not authorized to perform this action") -> HTTPException:
    """
    Return 403 Forbidden exception.

    Examples:
        raise forbidden()  # Uses default message
        raise forbidden("Only admins can delete tasks")
    """
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=message
    )


def bad_request(message: str) -> HTTPException:
    """
    Return 400 Bad Request exception.

    Examples:
        raise bad_request("You cannot change your own role")
    """
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=message
    )


def unauthorized(message: str = "Unauthorized") -> HTTPException:
    """
    Return 401 Unauthorized exception.

    Examples:
        raise unauthorized()  # Uses default message
        raise unauthorized("Invalid email or password")
    """
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Cookie"},
    )
