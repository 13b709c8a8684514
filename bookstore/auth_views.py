import logging

from django.conf import settings
from django.db import IntegrityError, transaction
from django.http import JsonResponse
from django.middleware.csrf import get_token
from django.utils.decorators import method_decorator
from django.views.decorators.csrf import csrf_protect, ensure_csrf_cookie
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .models import User
from .serializers import RegisterSerializer
from .utilities import _iso, _parse_payload, api_response

logger = logging.getLogger(__name__)

COOKIE_NAME = "refresh_token"
COOKIE_PATH = "/api/token/"
COOKIE_SECURE = not settings.DEBUG
COOKIE_SAMESITE = "Lax"
COOKIE_MAX_AGE = int(settings.SIMPLE_JWT["REFRESH_TOKEN_LIFETIME"].total_seconds())


def serialize_user(user):
    return {
        "id": user.pk,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "createdAt": _iso(user.created_at),
    }


def tokens_for(user):
    refresh = AccountTokenSerializer.get_token(user)
    return str(refresh.access_token), str(refresh)


def _set_refresh_cookie(response, refresh):
    response.set_cookie(
        COOKIE_NAME, refresh,
        max_age=COOKIE_MAX_AGE,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite=COOKIE_SAMESITE,
        path=COOKIE_PATH,
    )


class AccountTokenSerializer(TokenObtainPairSerializer):
    """Login with email + password; tokens carry role, email and name."""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["role"] = user.role
        token["email"] = user.email
        token["name"] = user.name
        return token


@ensure_csrf_cookie
def csrf(request):
    """
    GET /api/csrf/ -> sets csrftoken cookie and returns it as JSON
    Use this once on app load before refreshing or logging out.
    """
    return JsonResponse({"csrfToken": get_token(request)})


class RegisterView(APIView):
    authentication_classes = ()
    permission_classes = [AllowAny]

    def post(self, request):
        ser = RegisterSerializer(data=_parse_payload(request))
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        email = data["email"].strip().lower()

        try:
            with transaction.atomic():
                user = User.objects.create_user(email=email, password=data["password"], name=data["name"].strip())
        except IntegrityError:
            raise ValidationError("User already exists with this email")

        access, refresh = tokens_for(user)
        logger.info("New user registered: %s", email)
        res = api_response({"user": serialize_user(user), "access": access},
                           message="User registered successfully", status_code=status.HTTP_201_CREATED)
        _set_refresh_cookie(res, refresh)
        return res


@method_decorator(csrf_protect, name="post")
class CookieTokenObtainPairView(TokenObtainPairView):
    serializer_class = AccountTokenSerializer

    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data=request.data)
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])

        tokens = serializer.validated_data
        logger.info("User logged in: %s", serializer.user.email)
        res = api_response({"user": serialize_user(serializer.user), "access": tokens["access"]},
                           message="Login successful")
        _set_refresh_cookie(res, tokens["refresh"])
        return res


@method_decorator(csrf_protect, name="post")
class CookieTokenRefreshView(TokenRefreshView):
    """
    POST /api/token/refresh/ -> returns {"access": "..."} using HttpOnly cookie.
    Requires X-CSRFToken header (double submit).
    """
    def post(self, request, *args, **kwargs):
        serializer = self.get_serializer(data={"refresh": request.COOKIES.get(COOKIE_NAME)})
        try:
            serializer.is_valid(raise_exception=True)
        except TokenError as e:
            raise InvalidToken(e.args[0])

        tokens = serializer.validated_data
        res = api_response({"access": tokens["access"]})
        if "refresh" in tokens:
            _set_refresh_cookie(res, tokens["refresh"])
        return res


@method_decorator(csrf_protect, name="post")
class LogoutView(APIView):
    authentication_classes = ()
    permission_classes = ()

    def post(self, request):
        r = api_response(message="Logged out")
        r.delete_cookie(COOKIE_NAME, path=COOKIE_PATH)
        return r


class MeView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(serialize_user(request.user))
