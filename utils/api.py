"""
JSON API Helpers

Response builders and the json_endpoint decorator that turns AppError into
its HTTP status and any other exception into a logged, monitored 500.
"""

from datetime import date
from functools import wraps

import structlog
from flask import jsonify, request
from pydantic import ValidationError as SchemaValidationError

from models import db

from .errors import AppError, InternalError, ValidationError
from .monitoring import capture_error

logger = structlog.get_logger(__name__)


def json_success(data=None, status=200, **extra):
    """{"success": true, "data": ...} plus any extra top-level keys."""
    body = {'success': True}
    if data is not None:
        body['data'] = data
    body.update(extra)
    return jsonify(body), status


def json_error(message, status):
    return jsonify({'success': False, 'error': message}), status


def json_endpoint(failure_message):
    """
    Wrap a route so every failure becomes a JSON error.

    AppError subclasses are logged at WARNING with the view name and route
    params, then answer with their own status and message. Anything
    else rolls back the session, is reported to monitoring with the request
    context, and answers 500 with failure_message.
    """
    def decorator(view):
        @wraps(view)
        def wrapped(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except AppError as e:
                if isinstance(e, InternalError):
                    return _internal_failure(e, view, kwargs, failure_message)
                db.session.rollback()
                logger.warning(
                    'Request rejected', code=e.code, status=e.status_code, reason=e.message,
                    action=view.__name__, method=request.method, endpoint=request.path,
                    params=_route_params(kwargs),
                )
                return json_error(e.message, e.status_code)
            except Exception as e:
                return _internal_failure(e, view, kwargs, failure_message)
        return wrapped
    return decorator


def _route_params(kwargs):
    return {k: v for k, v in kwargs.items() if v is not None}


def _internal_failure(error, view, route_params, failure_message):
    db.session.rollback()
    context = {
        'action': view.__name__,
        'endpoint': request.path,
        'method': request.method,
        **_route_params(route_params),
    }
    capture_error(error, context)
    logger.error(failure_message, error=str(error), exc_info=(type(error), error, error.__traceback__), **context)
    return json_error(failure_message, 500)


def get_json_body():
    """Request body as a dict; a missing or non-object body is treated as {}."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def parse_body(schema, data, context=None):
    """
    Validate data against a pydantic schema.

    The first error becomes a ValidationError whose message is the one
    raised by the schema's validators.
    """
    try:
        return schema.model_validate(data, context=context)
    except SchemaValidationError as e:
        raise ValidationError(schema_error_message(e)) from e


def schema_error_message(error):
    first = error.errors()[0]
    message = first.get('msg', 'Invalid request')
    # ValueError raised in a validator is reported as "Value error, <msg>"
    prefix = 'Value error, '
    if message.startswith(prefix):
        return message[len(prefix):]
    field = '.'.join(str(part) for part in first.get('loc', ()))
    return f'{field}: {message}' if field else message


def require_id(value, label):
    """Reject a blank path id with '<label> ID is required'."""
    if value is None or not str(value).strip():
        raise ValidationError(f'{label} ID is required')
    return str(value).strip()


def parse_bool_arg(value):
    """Query-string flag: None when absent, else value == 'true'."""
    if value is None:
        return None
    return value.lower() == 'true'


def parse_date_arg(value, label):
    """ISO date from the query string, or None when absent."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f'Invalid {label}. Use YYYY-MM-DD')


def parse_int_arg(value, message):
    """Integer from the query string, or None when absent."""
    if value is None or value == '':
        return None
    try:
        return int(value)
    except ValueError:
        raise ValidationError(message)
