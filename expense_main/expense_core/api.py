# expense_core/api.py

import json
import logging
from functools import wraps

from django.http import JsonResponse

from expense_core.errors import ExpenseError, Unauthorized, ValidationError

logger = logging.getLogger(__name__)


def error_response(error):
    return JsonResponse({"error": error.as_dict()}, status=error.status)


def api_view(view_func=None, *, login=True):
    """
    Wrap a JSON view.

    Anonymous callers are rejected with UNAUTHORIZED before the view runs
    (unless ``login=False``), and any ExpenseError raised by the view is
    rendered as ``{"error": {...}}`` with the error's status.
    """
    def decorator(func):
        @wraps(func)
        def wrapped(request, *args, **kwargs):
            try:
                if login and not request.user.is_authenticated:
                    raise Unauthorized("Authentication required.")
                return func(request, *args, **kwargs)
            except ExpenseError as e:
                logger.debug("%s %s -> %s: %s", request.method, request.path, e.code, e.message)
                return error_response(e)
        return wrapped

    if view_func is not None:
        return decorator(view_func)
    return decorator


def json_body(request):
    """Decode the request body as a JSON object ({} when empty)."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body)
    except (ValueError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON.")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")
    return data


def ok(payload, status=200):
    # Lists are allowed at the top level of our responses.
    return JsonResponse(payload, status=status, safe=False)
