"""
Unit tests for token verification and role permissions.
"""

from datetime import timedelta
from uuid import uuid4

import jwt
import pytest
from fastapi import HTTPException

from admissions.core.auth import (
    CurrentUser,
    Permission,
    UserRole,
    get_current_user,
    has_permission,
    require_permission,
    user_from_claims,
)
from admissions.core.config import settings
from admissions.core.security import create_access_token, decode_token


class TestHasPermission:
    def test_admin_has_everything(self):
        for permission in Permission:
            assert has_permission(UserRole.ADMIN, permission)

    def test_student_permissions(self):
        assert has_permission("student", Permission.EDIT_OWN_APPLICATION)
        assert has_permission(UserRole.STUDENT, "submit_application")
        assert not has_permission(UserRole.STUDENT, Permission.MANAGE_APPLICATIONS)

    def test_program_admin_permissions(self):
        assert has_permission(UserRole.PROGRAM_ADMIN, Permission.MANAGE_APPLICATIONS)
        assert not has_permission(UserRole.PROGRAM_ADMIN, Permission.EDIT_OWN_APPLICATION)

    def test_unknown_role_grants_nothing(self):
        assert not has_permission("janitor", Permission.VIEW_APPLICATIONS)
        assert not has_permission(None, Permission.VIEW_APPLICATIONS)


class TestTokens:
    def test_round_trip(self):
        user_id = str(uuid4())
        token = create_access_token(user_id, "student", email="s@test.com")

        claims = decode_token(token)

        assert claims["sub"] == user_id
        assert claims["role"] == "student"
        assert claims["email"] == "s@test.com"

    def test_expired_token(self):
        token = create_access_token(str(uuid4()), "student", expires_delta=timedelta(seconds=-1))
        assert decode_token(token) is None

    def test_wrong_signature(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "role": "admin", "exp": 9999999999},
            "not-the-secret",
            algorithm=settings.jwt_algorithm,
        )
        assert decode_token(token) is None

    def test_missing_expiry(self):
        token = jwt.encode(
            {"sub": str(uuid4()), "role": "admin"},
            settings.jwt_secret_key,
            algorithm=settings.jwt_algorithm,
        )
        assert decode_token(token) is None


class TestUserFromClaims:
    def test_valid_claims(self):
        user_id = uuid4()
        user = user_from_claims({"sub": str(user_id), "role": "program_admin"})

        assert user == CurrentUser(id=user_id, role=UserRole.PROGRAM_ADMIN)
        assert user.is_program_admin

    def test_refresh_token_rejected(self):
        with pytest.raises(HTTPException) as exc_info:
            user_from_claims({"sub": str(uuid4()), "role": "student", "type": "refresh"})
        assert exc_info.value.detail["error"] == "INVALID_TOKEN_TYPE"

    @pytest.mark.parametrize(
        "claims",
        [
            {"sub": "not-a-uuid", "role": "student"},
            {"sub": str(uuid4()), "role": "superuser"},
            {"role": "student"},
        ],
    )
    def test_malformed_claims(self, claims):
        with pytest.raises(HTTPException) as exc_info:
            user_from_claims(claims)
        assert exc_info.value.status_code == 401


class TestDependencies:
    @pytest.mark.asyncio
    async def test_get_current_user(self):
        user_id = uuid4()
        token = create_access_token(str(user_id), "admin")
        credentials = type("Credentials", (), {"credentials": token})()

        user = await get_current_user(credentials)

        assert user.id == user_id
        assert user.is_admin

    @pytest.mark.asyncio
    async def test_get_current_user_invalid_token(self):
        credentials = type("Credentials", (), {"credentials": "garbage"})()

        with pytest.raises(HTTPException) as exc_info:
            await get_current_user(credentials)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_require_permission(self, student, program_admin):
        dependency = require_permission(Permission.MANAGE_APPLICATIONS)

        assert await dependency(user=program_admin) is program_admin
        with pytest.raises(HTTPException) as exc_info:
            await dependency(user=student)
        assert exc_info.value.status_code == 403
        assert exc_info.value.detail["error"] == "PERMISSION_DENIED"
