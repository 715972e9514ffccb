"""Tests for app.services.auth: signup, login with lockout, password lifecycle and gating."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import (
    AccountLockedError,
    DuplicateEmailError,
    DuplicateUsernameError,
    EmailAlreadyVerifiedError,
    EmailNotVerifiedError,
    ForbiddenError,
    IncorrectPasswordError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    TransientError,
    UnauthenticatedError,
    WeakPasswordError,
)
from app.core.security import TokenIssuer, verify_password
from app.models import Base, User, UserTag
from app.services.auth import AuthService, require_email_verification, restrict_to
from app.services.lockout import LockoutPolicy
from app.services.tags import DEFAULT_TAGS

PASSWORD = "Abcdef1!"
NEW_PASSWORD = "Zyxwvu9#"


def _session_factory() -> sessionmaker:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False)


class AuthServiceTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.db = _session_factory()()
        self.issuer = TokenIssuer("auth-service-test-secret", ttl=timedelta(days=7))
        self.service = AuthService(
            self.db,
            token_issuer=self.issuer,
            lockout=LockoutPolicy(threshold=5, lock_duration=timedelta(hours=2)),
            bcrypt_rounds=4,
        )

    def tearDown(self) -> None:
        self.db.close()

    def _signup(self, email: str = "ada@example.com", **kwargs: object):
        return self.service.signup("Ada", "Lovelace", email, kwargs.pop("password", PASSWORD), **kwargs)


class TestSignup(AuthServiceTestCase):
    def test_creates_unverified_user_with_hashed_password(self) -> None:
        result = self._signup(email="Ada@Example.com")
        user = result.user
        self.assertEqual(user.email, "ada@example.com")
        self.assertEqual(user.role, "user")
        self.assertFalse(user.is_email_verified)
        self.assertEqual(user.failed_login_attempts, 0)
        self.assertNotEqual(user.password_hash, PASSWORD)
        self.assertTrue(verify_password(PASSWORD, user.password_hash))
        self.assertEqual(self.issuer.verify(result.token).user_id, user.id)
        self.assertIsNotNone(result.verification_token)
        self.assertIsNotNone(user.email_verification_token)

    def test_seeds_default_tags(self) -> None:
        user = self._signup().user
        count = self.db.query(UserTag).filter(UserTag.user_id == user.id).count()
        self.assertEqual(count, len(DEFAULT_TAGS))

    def test_duplicate_email_is_case_insensitive(self) -> None:
        self._signup()
        with self.assertRaises(DuplicateEmailError):
            self._signup(email="ADA@example.com")
        self.assertEqual(self.db.query(User).count(), 1)

    def test_duplicate_username(self) -> None:
        self._signup(username="ada")
        with self.assertRaises(DuplicateUsernameError):
            self._signup(email="other@example.com", username="ada")

    def test_weak_password_creates_nothing(self) -> None:
        with self.assertRaises(WeakPasswordError) as ctx:
            self._signup(password="abcdefgh")
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertTrue(all(e["field"] == "password" for e in ctx.exception.errors))
        self.assertEqual(self.db.query(User).count(), 0)


class TestLogin(AuthServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self._signup().user

    def test_success_returns_token_and_resets_attempts(self) -> None:
        self.user.failed_login_attempts = 3
        self.db.commit()
        result = self.service.login("ADA@example.com", PASSWORD)
        self.assertEqual(result.user.id, self.user.id)
        self.assertEqual(result.user.failed_login_attempts, 0)
        self.assertIsNotNone(result.user.last_login_at)
        self.assertEqual(self.issuer.verify(result.token).role, "user")

    def test_unknown_email_and_wrong_password_look_the_same(self) -> None:
        with self.assertRaises(InvalidCredentialsError) as unknown:
            self.service.login("nobody@example.com", PASSWORD)
        with self.assertRaises(InvalidCredentialsError) as wrong:
            self.service.login("ada@example.com", "Wrong1!pass")
        self.assertEqual(unknown.exception.message, wrong.exception.message)

    def test_unknown_email_still_checks_a_password_hash(self) -> None:
        with patch("app.services.auth.verify_password", return_value=False) as verify:
            with self.assertRaises(InvalidCredentialsError):
                self.service.login("nobody@example.com", PASSWORD)
        verify.assert_called_once()
        password, hashed = verify.call_args.args
        self.assertEqual(password, PASSWORD)
        self.assertTrue(hashed.startswith("$2b$"))

    def test_five_failures_lock_then_correct_password_is_refused(self) -> None:
        now = datetime(2025, 6, 1, 9, 0, 0, tzinfo=UTC)
        for i in range(5):
            with self.assertRaises(InvalidCredentialsError):
                self.service.login("ada@example.com", "Wrong1!pass", now=now + timedelta(seconds=i))
        self.db.refresh(self.user)
        self.assertEqual(self.user.failed_login_attempts, 5)
        self.assertIsNotNone(self.user.locked_until)

        with self.assertRaises(AccountLockedError) as ctx:
            self.service.login("ada@example.com", PASSWORD, now=now + timedelta(minutes=5))
        self.assertEqual(ctx.exception.code, "ACCOUNT_LOCKED")
        self.assertEqual(ctx.exception.status_code, 401)

    def test_login_after_lock_expires_succeeds_and_clears_lock(self) -> None:
        now = datetime(2025, 6, 1, 9, 0, 0, tzinfo=UTC)
        for _ in range(5):
            with self.assertRaises(InvalidCredentialsError):
                self.service.login("ada@example.com", "Wrong1!pass", now=now)
        result = self.service.login("ada@example.com", PASSWORD, now=now + timedelta(hours=2))
        self.assertEqual(result.user.failed_login_attempts, 0)
        self.assertIsNone(result.user.locked_until)

    def test_failure_after_lock_expires_restarts_count(self) -> None:
        now = datetime(2025, 6, 1, 9, 0, 0, tzinfo=UTC)
        for _ in range(5):
            with self.assertRaises(InvalidCredentialsError):
                self.service.login("ada@example.com", "Wrong1!pass", now=now)
        with self.assertRaises(InvalidCredentialsError):
            self.service.login("ada@example.com", "Wrong1!pass", now=now + timedelta(hours=3))
        self.db.refresh(self.user)
        self.assertEqual(self.user.failed_login_attempts, 1)
        self.assertIsNone(self.user.locked_until)

    def test_deactivated_account_cannot_log_in(self) -> None:
        self.user.is_active = False
        self.db.commit()
        with self.assertRaises(InvalidCredentialsError):
            self.service.login("ada@example.com", PASSWORD)


class TestPasswordLifecycle(AuthServiceTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user = self._signup().user

    def test_change_password_invalidates_earlier_sessions(self) -> None:
        old_token = self.service.login("ada@example.com", PASSWORD).token
        result = self.service.change_password(self.user, PASSWORD, NEW_PASSWORD)

        with self.assertRaises(UnauthenticatedError) as ctx:
            self.service.authenticate(old_token)
        self.assertIn("recently changed password", ctx.exception.message)
        self.assertEqual(self.service.authenticate(result.token).id, self.user.id)
        self.assertTrue(verify_password(NEW_PASSWORD, self.user.password_hash))

    def test_change_password_requires_current_password(self) -> None:
        with self.assertRaises(IncorrectPasswordError):
            self.service.change_password(self.user, "Wrong1!pass", NEW_PASSWORD)

    def test_change_password_checks_policy_first(self) -> None:
        with self.assertRaises(WeakPasswordError) as ctx:
            self.service.change_password(self.user, "Wrong1!pass", "short")
        self.assertEqual(ctx.exception.errors[0]["field"], "newPassword")

    def test_forgot_password_unknown_email_returns_none(self) -> None:
        self.assertIsNone(self.service.forgot_password("nobody@example.com"))

    def test_reset_password_with_token(self) -> None:
        token = self.service.forgot_password("ada@example.com")
        self.assertIsNotNone(token)
        result = self.service.reset_password(token, NEW_PASSWORD)
        self.assertTrue(verify_password(NEW_PASSWORD, result.user.password_hash))
        self.assertIsNone(result.user.password_reset_token)
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.service.reset_password(token, "Another1!")

    def test_reset_password_clears_lockout(self) -> None:
        for _ in range(5):
            with self.assertRaises(InvalidCredentialsError):
                self.service.login("ada@example.com", "Wrong1!pass")
        token = self.service.forgot_password("ada@example.com")
        self.service.reset_password(token, NEW_PASSWORD)
        self.assertEqual(self.service.login("ada@example.com", NEW_PASSWORD).user.id, self.user.id)

    def test_reset_password_with_bad_token(self) -> None:
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.service.reset_password("f" * 64, NEW_PASSWORD)

    def test_weak_reset_password_does_not_consume_token(self) -> None:
        token = self.service.forgot_password("ada@example.com")
        with self.assertRaises(WeakPasswordError):
            self.service.reset_password(token, "weak")
        self.service.reset_password(token, NEW_PASSWORD)


class TestEmailVerification(AuthServiceTestCase):
    def test_verify_then_reuse_fails(self) -> None:
        result = self._signup()
        user = self.service.verify_email(result.verification_token)
        self.assertTrue(user.is_email_verified)
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.service.verify_email(result.verification_token)

    def test_resend_replaces_token(self) -> None:
        result = self._signup()
        fresh = self.service.resend_verification(result.user)
        with self.assertRaises(InvalidOrExpiredTokenError):
            self.service.verify_email(result.verification_token)
        self.assertTrue(self.service.verify_email(fresh).is_email_verified)

    def test_resend_when_verified(self) -> None:
        result = self._signup()
        self.service.verify_email(result.verification_token)
        with self.assertRaises(EmailAlreadyVerifiedError):
            self.service.resend_verification(result.user)


class TestAuthenticate(AuthServiceTestCase):
    def test_valid_token(self) -> None:
        result = self._signup()
        self.assertEqual(self.service.authenticate(result.token).id, result.user.id)

    def test_garbage_token(self) -> None:
        with self.assertRaises(UnauthenticatedError) as ctx:
            self.service.authenticate("garbage")
        self.assertEqual(ctx.exception.headers, {"WWW-Authenticate": "Bearer"})

    def test_expired_token(self) -> None:
        user = self._signup().user
        token = self.issuer.issue(user.id, "user", now=datetime.now(UTC) - timedelta(days=8))
        with self.assertRaises(UnauthenticatedError) as ctx:
            self.service.authenticate(token)
        self.assertIn("expired", ctx.exception.message)

    def test_deleted_user(self) -> None:
        token = self.issuer.issue(9999, "user")
        with self.assertRaises(UnauthenticatedError):
            self.service.authenticate(token)

    def test_inactive_user(self) -> None:
        result = self._signup()
        result.user.is_active = False
        self.db.commit()
        with self.assertRaises(UnauthenticatedError):
            self.service.authenticate(result.token)


class TestGates(unittest.TestCase):
    def test_restrict_to(self) -> None:
        admin = User(role="admin")
        self.assertIs(restrict_to(["admin"], admin), admin)
        with self.assertRaises(ForbiddenError):
            restrict_to(["admin"], User(role="user"))

    def test_require_email_verification(self) -> None:
        verified = User(is_email_verified=True)
        self.assertIs(require_email_verification(verified), verified)
        with self.assertRaises(EmailNotVerifiedError) as ctx:
            require_email_verification(User(is_email_verified=False))
        self.assertEqual(ctx.exception.status_code, 403)


class TestStoreUnavailable(unittest.TestCase):
    """A commit failing on connectivity surfaces as a retryable TransientError."""

    def test_operational_error_on_commit(self) -> None:
        db = MagicMock()
        db.commit.side_effect = OperationalError("UPDATE users", {}, Exception("connection refused"))
        service = AuthService(db, token_issuer=TokenIssuer("secret"), bcrypt_rounds=4)

        with self.assertRaises(TransientError) as ctx:
            service.forgot_password("ada@example.com")

        self.assertTrue(ctx.exception.retryable)
        self.assertEqual(ctx.exception.status_code, 503)
        self.assertIn("Retry-After", ctx.exception.headers)
        db.rollback.assert_called_once()


if __name__ == "__main__":
    unittest.main()
