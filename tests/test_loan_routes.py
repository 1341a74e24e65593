"""Tests for the loan blueprint."""

from __future__ import annotations

from tests.helpers import LEADER_ID, MEMBER_ID, FirebaseTestCase


class LoanRoutesFirebaseTestCase(FirebaseTestCase):
    """Test case for the loan blueprint."""

    def _request(self, **payload):
        self.login(MEMBER_ID)
        return self.client.post("/loans/", json=payload)

    def test_guild_loan_round_trip(self) -> None:
        response = self._request(amount=500, source_type="guild")
        self.assertEqual(response.status_code, 201)
        loan = response.get_json()["data"]
        self.assertEqual(loan["borrower"]["name"], "Kitty")
        self.assertEqual(loan["source"]["guild"], "GalaxyCat")

        self.login(LEADER_ID)
        response = self.client.post(f"/loans/{loan['loanId']}/approve")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["message"], "Loan is now active.")

        self.login(MEMBER_ID)
        response = self.client.post(f"/loans/{loan['loanId']}/return")
        self.assertEqual(response.status_code, 200)

        self.login(LEADER_ID)
        response = self.client.post(f"/loans/{loan['loanId']}/complete")
        self.assertEqual(response.get_json()["data"]["status"], "completed")

        response = self.client.get("/loans/guild?status=completed")
        self.assertEqual([loan["loanId"] for loan in response.get_json()], [loan["loanId"]])

    def test_merchant_loan_needs_merchant(self) -> None:
        response = self._request(amount=100, source_type="merchant")
        self.assertEqual(response.status_code, 400)
        self.assertIn("merchant", response.get_json()["message"])

    def test_merchant_loans_are_listed_for_the_merchant(self) -> None:
        response = self._request(
            amount=100, source_type="merchant", merchant_id=LEADER_ID
        )
        self.assertEqual(response.status_code, 201)
        loan_id = response.get_json()["data"]["loanId"]

        self.assertEqual(
            [loan["loanId"] for loan in self.client.get("/loans/mine").get_json()], [loan_id]
        )
        self.login(LEADER_ID)
        self.assertEqual(
            [loan["loanId"] for loan in self.client.get("/loans/merchant").get_json()],
            [loan_id],
        )
        response = self.client.post(f"/loans/{loan_id}/reject")
        self.assertEqual(response.get_json()["data"]["status"], "rejected")

    def test_invalid_transition_is_a_conflict(self) -> None:
        loan_id = self._request(amount=100, source_type="guild").get_json()["data"][
            "loanId"
        ]
        self.login(LEADER_ID)
        response = self.client.post(f"/loans/{loan_id}/complete")
        self.assertEqual(response.status_code, 409)

    def test_unknown_action_and_status(self) -> None:
        loan_id = self._request(amount=100, source_type="guild").get_json()["data"][
            "loanId"
        ]
        self.assertEqual(self.client.post(f"/loans/{loan_id}/forgive").status_code, 400)
        self.assertEqual(self.client.get("/loans/mine?status=lost").status_code, 400)

    def test_borrower_cannot_approve(self) -> None:
        loan_id = self._request(amount=100, source_type="guild").get_json()["data"][
            "loanId"
        ]
        response = self.client.post(f"/loans/{loan_id}/approve")
        self.assertEqual(response.status_code, 403)
