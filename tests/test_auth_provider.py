"""Tests for the mock auth provider."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from coprodesk.auth.models import AuthCredentials
from coprodesk.auth.provider import AuthProvider, MockAuthProvider, password_context


class TestMockAuthProvider:
    def setup_method(self) -> None:
        self.provider = MockAuthProvider(password_rounds=4)

    def test_satisfies_protocol(self) -> None:
        assert isinstance(self.provider, AuthProvider)

    def test_fixture_profiles_loaded(self) -> None:
        emails = {p["email"] for p in self.provider.profiles}
        assert "proprietaire@coprodesk.local" in emails
        assert "admin@coprodesk.local" in emails

    def test_profiles_hide_passwords(self) -> None:
        assert all("password" not in p for p in self.provider.profiles)

    def test_authenticate_success(self) -> None:
        result = self.provider.authenticate(
            AuthCredentials(email="proprietaire@coprodesk.local", password="owner-pass")
        )
        assert result.success
        assert result.token is not None
        assert result.user_id == "u-owner"

    def test_email_is_case_insensitive(self) -> None:
        result = self.provider.authenticate(
            AuthCredentials(email="Proprietaire@CoproDesk.local", password="owner-pass")
        )
        assert result.success

    def test_authenticate_wrong_password(self) -> None:
        result = self.provider.authenticate(
            AuthCredentials(email="proprietaire@coprodesk.local", password="wrong")
        )
        assert not result.success
        assert "Invalid" in result.error

    def test_authenticate_unknown_email(self) -> None:
        result = self.provider.authenticate(
            AuthCredentials(email="nobody@example.com", password="whatever")
        )
        assert not result.success

    def test_validate_token(self) -> None:
        result = self.provider.authenticate(
            AuthCredentials(email="asl@coprodesk.local", password="asl-pass")
        )
        validation = self.provider.validate_token(result.token)
        assert validation.valid
        assert validation.user_id == "u-asl"

    def test_validate_bad_token(self) -> None:
        assert not self.provider.validate_token("nope").valid

    def test_expired_token(self) -> None:
        self.provider._tokens["old"] = {
            "user_id": "u-asl",
            "expires_at": datetime.now(timezone.utc) - timedelta(minutes=1),
        }
        assert not self.provider.validate_token("old").valid
        assert "old" not in self.provider._tokens

    def test_refresh_rotates_token(self) -> None:
        result = self.provider.authenticate(
            AuthCredentials(email="asl@coprodesk.local", password="asl-pass")
        )
        refreshed = self.provider.refresh_token(result.token)
        assert refreshed.success
        assert refreshed.token != result.token
        assert not self.provider.validate_token(result.token).valid
        assert self.provider.validate_token(refreshed.token).valid

    def test_revoke(self) -> None:
        result = self.provider.authenticate(
            AuthCredentials(email="asl@coprodesk.local", password="asl-pass")
        )
        assert self.provider.revoke_token(result.token)
        assert not self.provider.revoke_token(result.token)


class TestSignUp:
    def setup_method(self) -> None:
        self.provider = MockAuthProvider(fixtures_path="/nonexistent/fixtures.yml", password_rounds=4)

    def test_sign_up_then_authenticate(self) -> None:
        result = self.provider.sign_up(
            AuthCredentials(email="new@example.com", password="secret1")
        )
        assert result.success
        login = self.provider.authenticate(
            AuthCredentials(email="new@example.com", password="secret1")
        )
        assert login.user_id == result.user_id

    @pytest.mark.parametrize(
        ("email", "password", "message"),
        [
            ("not-an-email", "secret1", "email"),
            ("short@example.com", "12345", "6 characters"),
        ],
    )
    def test_sign_up_rejects_bad_input(self, email, password, message) -> None:
        result = self.provider.sign_up(AuthCredentials(email=email, password=password))
        assert not result.success
        assert message in result.error

    def test_duplicate_refused(self) -> None:
        creds = AuthCredentials(email="dup@example.com", password="secret1")
        assert self.provider.sign_up(creds).success
        assert not self.provider.sign_up(creds).success


class TestPasswordHashing:
    def test_bcrypt_hash_and_verify(self) -> None:
        context = password_context(4)
        hashed = context.hash("owner-pass")
        assert hashed.startswith("$2b$04$")
        assert context.verify("owner-pass", hashed)
        assert not context.verify("wrong-pass", hashed)

    def test_fixture_identities_hold_bcrypt_hashes(self) -> None:
        provider = MockAuthProvider(password_rounds=4)
        stored = provider._identities["proprietaire@coprodesk.local"]["password_hash"]
        assert stored.startswith("$2b$04$")
        assert "owner-pass" not in stored

    def test_signed_up_password_verifies(self) -> None:
        provider = MockAuthProvider(fixtures_path="/nonexistent/fixtures.yml", password_rounds=4)
        provider.sign_up(AuthCredentials(email="nouveau@example.com", password="secret-pass"))
        ok = provider.authenticate(
            AuthCredentials(email="nouveau@example.com", password="secret-pass")
        )
        assert ok.success
        bad = provider.authenticate(AuthCredentials(email="nouveau@example.com", password="nope"))
        assert not bad.success
