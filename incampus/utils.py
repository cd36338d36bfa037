import logging
import traceback
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
from django.http import Http404
from django.core.exceptions import PermissionDenied, ValidationError
from django.db.utils import IntegrityError
from django.conf import settings

logger = logging.getLogger('incampus')


def _flatten_message(data):
    """
    Reduce DRF error data (strings, lists, nested dicts) to one readable message.
    """
    if isinstance(data, dict):
        if 'detail' in data and len(data) == 1:
            return _flatten_message(data['detail'])
        parts = []
        for field, errors in data.items():
            message = _flatten_message(errors)
            if field == 'non_field_errors':
                parts.append(message)
            else:
                parts.append(f"{field}: {message}")
        return '; '.join(parts)
    if isinstance(data, (list, tuple)):
        return ' '.join(_flatten_message(item) for item in data)
    return str(data)


def custom_exception_handler(exc, context):
    """
    Custom exception handler for DRF that renders every failure as
    {"status": "error", "message": ...} and logs it.
    """
    response = exception_handler(exc, context)

    # If response is None, DRF doesn't handle this exception by default
    if response is None:
        if isinstance(exc, Http404):
            response = Response(
                {'status': 'error', 'message': str(exc) or 'Not found'},
                status=status.HTTP_404_NOT_FOUND
            )
        elif isinstance(exc, PermissionDenied):
            response = Response(
                {'status': 'error', 'message': str(exc) or 'Permission denied'},
                status=status.HTTP_403_FORBIDDEN
            )
        elif isinstance(exc, ValidationError):
            detail = exc.message_dict if hasattr(exc, 'message_dict') else exc.messages
            response = Response(
                {'status': 'error', 'message': _flatten_message(detail)},
                status=status.HTTP_400_BAD_REQUEST
            )
        elif isinstance(exc, IntegrityError):
            response = Response(
                {'status': 'error', 'message': 'Database integrity error'},
                status=status.HTTP_400_BAD_REQUEST
            )
        else:
            error_message = str(exc)

            logger.error(
                f"Uncaught exception: {exc.__class__.__name__}: {error_message}\n"
                f"Traceback: {traceback.format_exc()}"
            )

            # In production, don't expose detailed error information to the client
            if not settings.DEBUG:
                error_message = "An unexpected error occurred. Please try again later."

            response = Response(
                {'status': 'error', 'message': error_message},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR
            )
        return response

    request = context.get('request')
    view = context.get('view')
    logger.warning(
        f"Exception in {view.__class__.__name__}: {exc.__class__.__name__}: {str(exc)}\n"
        f"Request: {getattr(request, 'method', '?')} {getattr(request, 'path', '?')}"
    )

    response.data = {'status': 'error', 'message': _flatten_message(response.data)}
    return response


def create_error_response(error_message, status_code=status.HTTP_400_BAD_REQUEST):
    """
    Helper function to create consistent error responses.
    """
    return Response({'status': 'error', 'message': _flatten_message(error_message)}, status=status_code)


def create_success_response(data=None, message=None, status_code=status.HTTP_200_OK):
    """
    Helper function to create consistent success responses.

    Args:
        data: Payload placed under "data"
        message: Optional human readable message
        status_code: HTTP status code

    Returns:
        Response object with {"status": "success", ...}
    """
    body = {'status': 'success'}
    if message is not None:
        body['message'] = message
    if data is not None:
        body['data'] = data
    return Response(body, status=status_code)
