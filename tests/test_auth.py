"""Tests for the auth blueprint."""

import unittest
from unittest.mock import patch

from tests.helpers import MEMBER_ID, FirebaseTestCase


class AuthFirebaseTestCase(FirebaseTestCase):
    def setUp(self):
        """Mock token verification on top of the shared Firestore setup."""
        super().setUp()
        patcher = patch("guildhall.auth.routes.auth")
        self.mock_auth_service = patcher.start()
        self.addCleanup(patcher.stop)

    def test_session_login(self):
        """A verified token for a known user opens a session."""
        self.mock_auth_service.verify_id_token.return_value = {"uid": MEMBER_ID}
        response = self.client.post("/auth/session_login", json={"idToken": "tok"})
        self.assertEqual(response.status_code, 200)
        self.mock_auth_service.verify_id_token.assert_called_once_with("tok")

        response = self.client.get("/auth/me")
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data["uid"], MEMBER_ID)
        self.assertEqual(data["discordName"], "Kitty")
        self.assertIn("char1", data["characters"])

    def test_session_login_unknown_user(self):
        self.mock_auth_service.verify_id_token.return_value = {"uid": "stranger"}
        response = self.client.post("/auth/session_login", json={"idToken": "tok"})
        self.assertEqual(response.status_code, 404)

    def test_session_login_bad_token(self):
        self.mock_auth_service.verify_id_token.side_effect = ValueError("bad token")
        response = self.client.post("/auth/session_login", json={"idToken": "tok"})
        self.assertEqual(response.status_code, 401)

    def test_session_login_missing_token(self):
        response = self.client.post("/auth/session_login", json={})
        self.assertEqual(response.status_code, 400)
        self.mock_auth_service.verify_id_token.assert_not_called()

    def test_logout(self):
        self.login()
        self.assertEqual(self.client.get("/auth/me").status_code, 200)
        self.client.post("/auth/logout")
        self.assertEqual(self.client.get("/auth/me").status_code, 401)


if __name__ == "__main__":
    unittest.main()
