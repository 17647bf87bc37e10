# storefront/api.py
"""
Small helpers shared by the JSON views: body parsing, auth guards and the
translation of service exceptions into JSON error responses.
"""

import json
import logging
from functools import wraps

from django.core.exceptions import BadRequest, ObjectDoesNotExist, PermissionDenied, ValidationError
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def is_admin(user):
    return user.is_authenticated and user.is_staff


def error_response(message, status=400, **extra):
    payload = {'success': False, 'message': message}
    payload.update(extra)
    return JsonResponse(payload, status=status)


def parse_json(request):
    """Decode the request body into a dict (empty body -> {})."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode('utf-8'))
    except (ValueError, UnicodeDecodeError):
        raise BadRequest("Invalid JSON body")
    if not isinstance(data, dict):
        raise BadRequest("JSON body must be an object")
    return data


def validation_message(exc):
    if hasattr(exc, 'message_dict'):
        for field, messages in exc.message_dict.items():
            if messages:
                return messages[0] if field == '__all__' else f"{field}: {messages[0]}"
    return exc.messages[0] if exc.messages else "Invalid request"


def form_error_message(form, with_field=True):
    for field, errors in form.errors.items():
        if errors:
            if field == '__all__' or not with_field:
                return errors[0]
            return f"{field}: {errors[0]}"
    return "Invalid request"


def api_login_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error_response("User not authenticated", status=401)
        return view(request, *args, **kwargs)
    return wrapper


def api_staff_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return error_response("User not authenticated", status=401)
        if not is_admin(request.user):
            logger.warning("Non-admin user %s attempted admin access to %s", request.user.pk, request.path)
            return error_response("Admin access required", status=403)
        return view(request, *args, **kwargs)
    return wrapper


def json_errors(view):
    """Map service-layer exceptions to JSON error responses."""
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except BadRequest as e:
            return error_response(str(e) or "Bad request", status=400)
        except ValidationError as e:
            return error_response(validation_message(e), status=400)
        except PermissionDenied as e:
            return error_response(str(e) or "Unauthorized", status=403)
        except ObjectDoesNotExist as e:
            return error_response(str(e) or "Not found", status=404)
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            return error_response("Something went wrong. Please try again.", status=500)
    return wrapper


def money(value):
    """Decimal -> float for JSON payloads."""
    return float(value) if value is not None else None


def timestamp(value):
    return value.isoformat() if value else None
