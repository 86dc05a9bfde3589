from __future__ import annotations

import json
import logging
from functools import wraps
from typing import Any

from django.http import Http404, JsonResponse

log = logging.getLogger(__name__)


class ServiceError(Exception):
    """Domain error that maps straight onto an HTTP status."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message, status_code)
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


def json_body(request) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ServiceError("invalid json", 400)
    if not isinstance(data, dict):
        raise ServiceError("invalid json", 400)
    return data


def error_response(message: str, status: int, **extra) -> JsonResponse:
    return JsonResponse({"message": message, **extra}, status=status)


def json_api(failure_message: str):
    """Translate ServiceError into its status and anything else into a 500."""

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            try:
                return view(request, *args, **kwargs)
            except ServiceError as e:
                return error_response(e.message, e.status_code)
            except Http404 as e:
                return error_response(str(e) or "not found", 404)
            except Exception as e:
                log.exception("%s: %s", failure_message, e)
                return error_response(failure_message, 500, error=str(e))

        return wrapper

    return decorator
