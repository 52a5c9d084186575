"""
Tests for scope helpers.
"""
from oauthgate.scopes import (
    DEFAULT_SCOPES,
    Scope,
    default_scope_strings,
    has_profile_scope,
    is_profile_bearing,
    scope_strings,
)


def test_default_scopes_are_profile_and_email():
    assert DEFAULT_SCOPES == [Scope.PROFILE, Scope.EMAIL]
    assert default_scope_strings() == ["profile", "email"]


def test_scope_strings_mixes_members_and_strings():
    assert scope_strings([Scope.YOUTUBE_UPLOAD, "custom"]) == [
        "https://www.googleapis.com/auth/youtube.upload",
        "custom",
    ]


def test_profile_bearing_scopes():
    assert is_profile_bearing(Scope.EMAIL)
    assert is_profile_bearing("profile")
    assert is_profile_bearing("https://www.googleapis.com/auth/userinfo.profile")
    assert not is_profile_bearing(Scope.OPENID)
    assert not is_profile_bearing(Scope.YOUTUBE_READONLY)


def test_has_profile_scope():
    assert has_profile_scope(["https://www.googleapis.com/auth/drive.readonly", "email"])
    assert not has_profile_scope(["https://www.googleapis.com/auth/drive.readonly"])
    assert not has_profile_scope([])
