from functools import wraps

from django.http import JsonResponse
from django.views.decorators.csrf import csrf_protect

from .models import ApiToken


def _bearer_user(request):
    header = request.headers.get("Authorization", "")
    scheme, _, raw = header.partition(" ")
    if scheme.lower() != "bearer" or not raw.strip():
        return None
    return ApiToken.authenticate(raw.strip())


def admin_required(view):
    """Allow bearer-token or session users whose role is admin.

    Token requests carry no cookies, so only the session path goes through
    the CSRF check.
    """
    protected = csrf_protect(view)

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        user = _bearer_user(request)
        if user is not None:
            request.user = user
            target = view
        else:
            user = getattr(request, "user", None)
            target = protected
        if user is None or not user.is_authenticated:
            return JsonResponse({"message": "Not authorized, no token"}, status=401)
        if not getattr(user, "is_admin", False):
            return JsonResponse({"message": "Not authorized as an admin"}, status=403)
        return target(request, *args, **kwargs)

    # CsrfViewMiddleware defers to the check above
    wrapper.csrf_exempt = True
    return wrapper
