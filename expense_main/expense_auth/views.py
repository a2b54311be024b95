# expense_auth/views.py

import logging

from django.contrib.auth import authenticate, get_user_model, login as auth_login, logout
from django.contrib.auth.password_validation import validate_password
from django.core import exceptions as django_exceptions
from django.core.validators import validate_email
from django.views.decorators.csrf import ensure_csrf_cookie
from django.views.decorators.http import require_GET, require_POST

from expense_core import validators as v
from expense_core.api import api_view, json_body, ok
from expense_core.errors import Conflict, Forbidden, Unauthorized, ValidationError

User = get_user_model()
logger = logging.getLogger(__name__)


def profile_dict(user):
    return {
        "id": user.id,
        "username": user.username,
        "name": user.get_full_name() or user.username,
        "email": user.email,
        "date_joined": user.date_joined.isoformat(),
    }


def _parse_email(value):
    email = v.parse_text(value, "email", max_length=254).lower()
    try:
        validate_email(email)
    except django_exceptions.ValidationError:
        raise ValidationError("Invalid email address.", field="email")
    return email


def _check_password(password, user):
    try:
        validate_password(password, user=user)
    except django_exceptions.ValidationError as exc:
        raise ValidationError(" ".join(exc.messages), field="password")


# ──────────────────────────────────────────────────────────────────────────────
# Auth - CSRF
# ──────────────────────────────────────────────────────────────────────────────
@api_view(login=False)
@require_GET
@ensure_csrf_cookie
def csrf_view(request):
    """Sets the csrftoken cookie the JSON client must echo on POSTs."""
    return ok({"ok": True})


# ──────────────────────────────────────────────────────────────────────────────
# Auth - Login
# ──────────────────────────────────────────────────────────────────────────────
@api_view(login=False)
@require_POST
def login_view(request):
    data = json_body(request)
    username = (data.get("username") or "").strip()
    password = data.get("password") or ""

    if not username or not password:
        raise ValidationError("Please fill in both username and password.")

    user = authenticate(request, username=username, password=password)
    if user is None:
        raise Unauthorized("Invalid username or password.")

    auth_login(request, user)
    logger.info("user=%s logged in", user.pk)
    return ok(profile_dict(user))


# ──────────────────────────────────────────────────────────────────────────────
# Auth - Sign Up
# ──────────────────────────────────────────────────────────────────────────────
@api_view(login=False)
@require_POST
def signup_view(request):
    data = json_body(request)
    username = v.parse_text(data.get("username"), "username", max_length=150)
    email = _parse_email(data.get("email"))
    name = v.parse_text(data.get("name"), "name", max_length=50)
    password = data.get("password") or ""
    confirm_password = data.get("confirm_password")

    if not password:
        raise ValidationError("Password is required.", field="password")
    if confirm_password is not None and password != confirm_password:
        raise ValidationError("Passwords do not match.", field="confirm_password")

    if User.objects.filter(username__iexact=username).exists():
        raise Conflict("This username is already taken.", field="username")
    if User.objects.filter(email__iexact=email).exists():
        raise Conflict("This email is already registered.", field="email")

    _check_password(password, User(username=username, email=email, first_name=name))

    user = User.objects.create_user(
        username=username,
        email=email,
        password=password,
        first_name=name,
    )
    auth_login(request, user, backend="django.contrib.auth.backends.ModelBackend")
    logger.info("user=%s signed up", user.pk)
    return ok(profile_dict(user), status=201)


# ──────────────────────────────────────────────────────────────────────────────
# Auth - Logout
# ──────────────────────────────────────────────────────────────────────────────
@api_view(login=False)
@require_POST
def logout_view(request):
    if request.user.is_authenticated:
        logout(request)
    return ok({"ok": True})


# ──────────────────────────────────────────────────────────────────────────────
# Profile
# ──────────────────────────────────────────────────────────────────────────────
@api_view
@require_GET
def profile(request):
    return ok(profile_dict(request.user))


@api_view
@require_POST
def profile_update(request):
    data = json_body(request)
    v.reject_unknown_fields(data, ("name", "email"))
    user = request.user

    if data.get("name") is not None:
        user.first_name = v.parse_text(data["name"], "name", max_length=50)
        user.last_name = ""
    if data.get("email") is not None:
        email = _parse_email(data["email"])
        if User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            raise Conflict("This email is already registered.", field="email")
        user.email = email

    user.save()
    return ok(profile_dict(user))


# ──────────────────────────────────────────────────────────────────────────────
# Users (staff only, read-only)
# ──────────────────────────────────────────────────────────────────────────────
@api_view
@require_GET
def user_list(request):
    if not request.user.is_staff:
        raise Forbidden("Only staff can list users.")
    users = User.objects.order_by("-date_joined", "-id")
    return ok([profile_dict(user) for user in users])
