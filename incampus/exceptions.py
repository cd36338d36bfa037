from rest_framework import status
from rest_framework.exceptions import APIException


class ServiceError(APIException):
    """
    Base class for failures raised by the relationship store,
    suggestion engine and other service-layer code.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'service_error'


class ValidationError(ServiceError):
    """Malformed input."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid input.'
    default_code = 'invalid'


class ConflictError(ServiceError):
    """Duplicate entity or invalid state transition."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Conflicting request.'
    default_code = 'conflict'


class AuthorizationError(ServiceError):
    """The acting user is not entitled to perform the operation."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not authorized to perform this action.'
    default_code = 'not_authorized'


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class DataIntegrityError(ServiceError):
    """
    Stored data is inconsistent (e.g. a user without a display name).
    Callers catch this and degrade the result instead of failing.
    """
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Inconsistent data.'
    default_code = 'data_integrity'
