"""
Google OAuth scopes understood by oauthgate.

Scopes fall into two groups: profile-bearing scopes, which allow reading the
user's email, name and picture from the userinfo endpoint, and API-only scopes
that grant access to unrelated resources.
"""
from enum import Enum
from typing import Iterable, List


class Scope(str, Enum):
    """A Google OAuth2 scope string."""

    # Basic identity
    EMAIL = "email"
    PROFILE = "profile"
    OPENID = "openid"

    # YouTube
    YOUTUBE_READONLY = "https://www.googleapis.com/auth/youtube.readonly"
    YOUTUBE = "https://www.googleapis.com/auth/youtube"
    YOUTUBE_UPLOAD = "https://www.googleapis.com/auth/youtube.upload"

    # Drive
    DRIVE_READONLY = "https://www.googleapis.com/auth/drive.readonly"


# Scopes used when none are configured
DEFAULT_SCOPES = [Scope.PROFILE, Scope.EMAIL]

# Google reports granted identity scopes in their long form
PROFILE_BEARING_SCOPES = frozenset({
    Scope.EMAIL.value,
    Scope.PROFILE.value,
    "https://www.googleapis.com/auth/userinfo.email",
    "https://www.googleapis.com/auth/userinfo.profile",
})


def scope_strings(scopes: Iterable) -> List[str]:
    """Convert Scope members (or plain strings) into their string values."""
    return [scope.value if isinstance(scope, Scope) else str(scope) for scope in scopes]


def default_scope_strings() -> List[str]:
    return scope_strings(DEFAULT_SCOPES)


def is_profile_bearing(scope) -> bool:
    value = scope.value if isinstance(scope, Scope) else str(scope)
    return value in PROFILE_BEARING_SCOPES


def has_profile_scope(scopes: Iterable) -> bool:
    """Return True if any scope allows a userinfo lookup."""
    return any(is_profile_bearing(scope) for scope in scopes)
