"""HTTP tests for /api/v1/auth: signup, login, lockout, sessions and password flows."""

import unittest
from unittest.mock import MagicMock, patch

import redis

from app.services.rate_limit import RedisCounterStore
from tests.api_helpers import API, PASSWORD, ApiTestCase

NEW_PASSWORD = "Zyxwvu9#"


class TestSignupEndpoint(ApiTestCase):
    def test_signup_returns_token_user_and_cookie(self) -> None:
        response = self.client.post(
            f"{API}/auth/signup",
            json={
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "Ada@Example.com",
                "password": PASSWORD,
                "confirmPassword": PASSWORD,
            },
        )
        self.assertEqual(response.status_code, 201, response.text)
        body = response.json()
        self.assertEqual(body["status"], "success")
        self.assertTrue(body["token"])
        user = body["data"]["user"]
        self.assertEqual(user["email"], "ada@example.com")
        self.assertEqual(user["fullName"], "Ada Lovelace")
        self.assertFalse(user["isEmailVerified"])
        self.assertNotIn("passwordHash", user)
        self.assertNotIn("password_hash", user)
        set_cookie = response.headers["set-cookie"]
        self.assertIn("jwt=", set_cookie)
        self.assertIn("HttpOnly", set_cookie)
        self.assertIn("SameSite=strict", set_cookie)

    def test_weak_password_is_400_with_field_errors(self) -> None:
        response = self.client.post(
            f"{API}/auth/signup",
            json={
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "ada@example.com",
                "password": "abcdefgh",
                "confirmPassword": "abcdefgh",
            },
        )
        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body["status"], "fail")
        self.assertEqual(body["code"], "WEAK_PASSWORD")
        self.assertTrue(all(e["field"] == "password" for e in body["errors"]))

    def test_password_over_72_bytes_is_rejected(self) -> None:
        password = "Aa1!" + "é" * 40
        response = self.client.post(
            f"{API}/auth/signup",
            json={
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "ada@example.com",
                "password": password,
                "confirmPassword": password,
            },
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(
            response.json()["errors"],
            [{"field": "password", "message": "Password must be at most 72 bytes long."}],
        )

    def test_password_over_72_characters_is_422(self) -> None:
        password = "Aa1!" * 19
        response = self.client.post(
            f"{API}/auth/signup",
            json={
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "ada@example.com",
                "password": password,
                "confirmPassword": password,
            },
        )
        self.assertEqual(response.status_code, 422)

    def test_mismatched_confirmation_is_422(self) -> None:
        response = self.client.post(
            f"{API}/auth/signup",
            json={
                "firstName": "Ada",
                "lastName": "Lovelace",
                "email": "ada@example.com",
                "password": PASSWORD,
                "confirmPassword": PASSWORD + "x",
            },
        )
        self.assertEqual(response.status_code, 422)

    def test_duplicate_email_is_409(self) -> None:
        self.signup()
        response = self.client.post(
            f"{API}/auth/signup",
            json={
                "firstName": "Other",
                "lastName": "Person",
                "email": "ADA@example.com",
                "password": PASSWORD,
                "confirmPassword": PASSWORD,
            },
        )
        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()["code"], "DUPLICATE_EMAIL")

    def test_signup_schedules_verification_email(self) -> None:
        with patch("app.api.v1.auth.send_verification_email") as send:
            self.signup()
        send.assert_called_once()
        self.assertEqual(send.call_args.args[1], "ada@example.com")
        self.assertEqual(len(send.call_args.args[2]), 64)


class TestLoginEndpoint(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.user_id = self.signup()["data"]["user"]["id"]

    def test_login_success(self) -> None:
        response = self.login()
        self.assertEqual(response.status_code, 200, response.text)
        self.assertTrue(response.json()["token"])
        self.assertIsNotNone(response.json()["data"]["user"]["lastLoginAt"])

    def test_wrong_password_and_unknown_email_are_identical(self) -> None:
        wrong = self.login(password="Wrong1!pass")
        unknown = self.login(email="nobody@example.com")
        self.assertEqual(wrong.status_code, 401)
        self.assertEqual(unknown.status_code, 401)
        self.assertEqual(wrong.json(), unknown.json())

    def test_lockout_after_five_failures(self) -> None:
        for _ in range(5):
            self.assertEqual(self.login(password="Wrong1!pass").status_code, 401)
        response = self.login()
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "ACCOUNT_LOCKED")

    def test_deactivated_user_cannot_log_in(self) -> None:
        self.set_user_fields(self.user_id, is_active=False)
        self.assertEqual(self.login().status_code, 401)


class TestSessionEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.token = self.signup()["token"]
        self.client.cookies.clear()

    def test_me_with_bearer(self) -> None:
        response = self.client.get(f"{API}/auth/me", headers=self.bearer(self.token))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["data"]["user"]["email"], "ada@example.com")

    def test_me_with_session_cookie(self) -> None:
        self.login()
        self.assertEqual(self.client.get(f"{API}/auth/me").status_code, 200)

    def test_me_without_credentials(self) -> None:
        response = self.client.get(f"{API}/auth/me")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.headers["www-authenticate"], "Bearer")

    def test_me_with_garbage_token(self) -> None:
        response = self.client.get(f"{API}/auth/me", headers=self.bearer("garbage"))
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "UNAUTHENTICATED")

    def test_logout_clears_cookie(self) -> None:
        response = self.client.post(f"{API}/auth/logout")
        self.assertEqual(response.status_code, 200)
        set_cookie = response.headers["set-cookie"]
        self.assertIn("jwt=", set_cookie)
        self.assertIn("Max-Age=0", set_cookie)


class TestPasswordEndpoints(ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.token = self.signup()["token"]
        self.client.cookies.clear()

    def test_update_password_rotates_session(self) -> None:
        response = self.client.patch(
            f"{API}/auth/update-password",
            headers=self.bearer(self.token),
            json={
                "currentPassword": PASSWORD,
                "newPassword": NEW_PASSWORD,
                "confirmPassword": NEW_PASSWORD,
            },
        )
        self.assertEqual(response.status_code, 200, response.text)
        new_token = response.json()["token"]
        self.client.cookies.clear()

        stale = self.client.get(f"{API}/auth/me", headers=self.bearer(self.token))
        self.assertEqual(stale.status_code, 401)
        self.assertIn("recently changed password", stale.json()["message"])
        self.assertEqual(
            self.client.get(f"{API}/auth/me", headers=self.bearer(new_token)).status_code, 200
        )
        self.assertEqual(self.login(password=NEW_PASSWORD).status_code, 200)

    def test_update_password_wrong_current(self) -> None:
        response = self.client.patch(
            f"{API}/auth/update-password",
            headers=self.bearer(self.token),
            json={
                "currentPassword": "Wrong1!pass",
                "newPassword": NEW_PASSWORD,
                "confirmPassword": NEW_PASSWORD,
            },
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["code"], "INCORRECT_PASSWORD")

    def test_forgot_password_is_200_for_unknown_email(self) -> None:
        known = self.client.post(f"{API}/auth/forgot-password", json={"email": "ada@example.com"})
        unknown = self.client.post(f"{API}/auth/forgot-password", json={"email": "nobody@example.com"})
        self.assertEqual(known.status_code, 200)
        self.assertEqual(unknown.status_code, 200)
        self.assertEqual(known.json(), unknown.json())

    def test_reset_password_flow(self) -> None:
        with patch("app.api.v1.auth.send_password_reset_email") as send:
            self.client.post(f"{API}/auth/forgot-password", json={"email": "ada@example.com"})
        token = send.call_args.args[2]

        response = self.client.patch(
            f"{API}/auth/reset-password/{token}",
            json={"password": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD},
        )
        self.assertEqual(response.status_code, 200, response.text)
        self.assertTrue(response.json()["token"])

        again = self.client.patch(
            f"{API}/auth/reset-password/{token}",
            json={"password": NEW_PASSWORD, "confirmPassword": NEW_PASSWORD},
        )
        self.assertEqual(again.status_code, 400)
        self.assertEqual(again.json()["code"], "INVALID_OR_EXPIRED_TOKEN")


class TestEmailVerificationEndpoints(ApiTestCase):
    def test_verify_email(self) -> None:
        with patch("app.api.v1.auth.send_verification_email") as send:
            body = self.signup()
        token = send.call_args.args[2]

        response = self.client.post(f"{API}/auth/verify-email/{token}")
        self.assertEqual(response.status_code, 200)
        me = self.client.get(f"{API}/auth/me", headers=self.bearer(body["token"]))
        self.assertTrue(me.json()["data"]["user"]["isEmailVerified"])
        self.assertEqual(self.client.post(f"{API}/auth/verify-email/{token}").status_code, 400)

    def test_resend_verification_requires_auth(self) -> None:
        self.assertEqual(self.client.post(f"{API}/auth/resend-verification").status_code, 401)

    def test_resend_verification(self) -> None:
        token = self.signup()["token"]
        with patch("app.api.v1.auth.send_verification_email") as send:
            response = self.client.post(
                f"{API}/auth/resend-verification", headers=self.bearer(token)
            )
        self.assertEqual(response.status_code, 200)
        send.assert_called_once()


class TestRateLimitedEndpoints(ApiTestCase):
    rate_limit_enabled = True

    def test_sixth_login_in_window_is_429(self) -> None:
        for _ in range(5):
            self.assertEqual(self.login(email="nobody@example.com").status_code, 401)
        response = self.login(email="nobody@example.com")
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json()["code"], "RATE_LIMITED")
        self.assertGreater(int(response.headers["retry-after"]), 0)

    def test_fourth_forgot_password_is_429(self) -> None:
        for _ in range(3):
            response = self.client.post(f"{API}/auth/forgot-password", json={"email": "a@example.com"})
            self.assertEqual(response.status_code, 200)
        response = self.client.post(f"{API}/auth/forgot-password", json={"email": "a@example.com"})
        self.assertEqual(response.status_code, 429)


class TestRateLimitStoreDown(ApiTestCase):
    rate_limit_enabled = True

    def setUp(self) -> None:
        super().setUp()
        client = MagicMock()
        client.pipeline.return_value.execute.side_effect = redis.exceptions.ConnectionError(
            "connection refused"
        )
        self.limiter.store = RedisCounterStore(client)

    def test_login_is_503_not_500(self) -> None:
        response = self.login(email="nobody@example.com")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["code"], "TRANSIENT")
        self.assertEqual(response.headers["retry-after"], "5")


class TestHealth(ApiTestCase):
    def test_health_without_db_check(self) -> None:
        response = self.client.get(f"{API}/health", params={"check_db": "false"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["status"], "ok")
        self.assertIsNone(body["database"])

    def test_health_with_db_check(self) -> None:
        response = self.client.get(f"{API}/health")
        self.assertEqual(response.json()["database"], "connected")


if __name__ == "__main__":
    unittest.main()
