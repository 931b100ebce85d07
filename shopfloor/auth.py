"""
Service authentication.

Every /api/ route goes through ServiceAuthMiddleware: the bearer token
(Authorization header or `token` cookie) is verified by the configured
AuthBackend (the user service, over HTTP) and the resulting user dict is
stored on request.service_user.

Authorization is role based:

    @api_view(['POST'])
    @require_capability('inventory.reserve')
    def reserve(request):
        ...

Capabilities per role come from SHOPFLOOR['ROLE_CAPABILITIES'].
"""

import functools
import logging

from shopfloor.adapters import get_auth_backend
from shopfloor.api import error_response, fail
from shopfloor.conf import shopfloor_settings
from shopfloor.exceptions import AuthError, UpstreamError

logger = logging.getLogger(__name__)

API_PREFIX = '/api/'


def extract_token(request) -> str | None:
    """Bearer token from the Authorization header, else the `token` cookie."""
    header = request.headers.get('Authorization', '')
    scheme, _, value = header.partition(' ')
    if scheme.lower() == 'bearer' and value.strip():
        return value.strip()
    return request.COOKIES.get('token') or None


def _is_protected(path: str) -> bool:
    if not path.startswith(API_PREFIX):
        return False
    return not any(path.startswith(p) for p in shopfloor_settings.AUTH_EXEMPT_PATHS)


class ServiceAuthMiddleware:
    """Authenticate every API request against the user service."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request.service_user = None
        request.service_token = None

        if shopfloor_settings.AUTH_REQUIRED and _is_protected(request.path):
            token = extract_token(request)
            if not token:
                return fail(AuthError._default_messages['AUTH_REQUIRED'],
                            status=401, code='AUTH_REQUIRED')
            try:
                user = get_auth_backend().verify(token)
            except UpstreamError as e:
                return error_response(e)
            if not user:
                logger.info("auth.token.rejected", extra={"path": request.path})
                return fail(AuthError._default_messages['INVALID_TOKEN'],
                            status=401, code='INVALID_TOKEN')
            request.service_user = user
            request.service_token = token

        return self.get_response(request)


def has_capability(user: dict | None, capability: str) -> bool:
    if not user:
        return False
    granted = shopfloor_settings.ROLE_CAPABILITIES.get(user.get('role'), [])
    return '*' in granted or capability in granted


def check_capability(request, *capabilities: str) -> None:
    """
    Raise AuthError unless the request's user holds every capability.

    No-op when SHOPFLOOR['AUTH_REQUIRED'] is False.
    """
    if not shopfloor_settings.AUTH_REQUIRED:
        return
    user = getattr(request, 'service_user', None)
    if user is None:
        raise AuthError('AUTH_REQUIRED')
    missing = [c for c in capabilities if not has_capability(user, c)]
    if missing:
        logger.info(
            "auth.forbidden",
            extra={"user": user.get('username'), "role": user.get('role'), "missing": missing},
        )
        raise AuthError('FORBIDDEN', missing=missing)


def require_capability(*capabilities: str):
    """View decorator form of check_capability (place under @api_view)."""

    def decorator(view):
        @functools.wraps(view)
        def wrapper(request, *args, **kwargs):
            check_capability(request, *capabilities)
            return view(request, *args, **kwargs)
        return wrapper
    return decorator


def acting_user(request) -> str:
    """Username recorded on ledger entries."""
    user = getattr(request, 'service_user', None) or {}
    return str(user.get('username') or user.get('id') or '')
