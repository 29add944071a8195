"""Bearer-token authentication for the JSON views."""

import logging
from functools import wraps

from django.contrib.auth.models import User
from django.http import JsonResponse
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.tokens import AccessToken

logger = logging.getLogger(__name__)


def issue_token(user):
    return str(AccessToken.for_user(user))


def user_payload(user):
    return {"id": user.id, "username": user.username, "email": user.email}


def find_user_by_email(email):
    return User.objects.filter(email__iexact=email).first()


def jwt_required(view):
    """Reject the request with 401 unless it carries a valid bearer token.

    On success ``request.user`` is the token's owner and ``request.auth`` the
    validated token.
    """
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        try:
            result = JWTAuthentication().authenticate(request)
        except (InvalidToken, TokenError, AuthenticationFailed) as exc:
            logger.info("Rejected bearer token on %s: %s", request.path, exc)
            return JsonResponse({"message": "Invalid or expired token"}, status=401)
        if result is None:
            return JsonResponse({"message": "Access token required"}, status=401)
        request.user, request.auth = result
        return view(request, *args, **kwargs)
    return wrapper
