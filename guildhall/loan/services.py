"""Service layer for guild and merchant loans."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from firebase_admin import firestore

from guildhall.core.constants import (
    DEFAULT_GUILD_NAME,
    GUILD_LOANS_COLLECTION,
    MERCHANT_LOANS_COLLECTION,
    TRADE_COLLECTION,
)
from guildhall.errors import NotFoundError, PermissionDeniedError, ValidationError
from guildhall.feed.services import FeedService
from guildhall.guild.services import GuildService, get_discord_name
from guildhall.utils import now_ms, stream_documents

from .models import Borrower, Loan, LoanSource, LoanStatus, check_transition

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference

logger = logging.getLogger(__name__)


def _collection_for(source_type: str) -> str:
    if source_type == "guild":
        return GUILD_LOANS_COLLECTION
    if source_type == "merchant":
        return MERCHANT_LOANS_COLLECTION
    raise ValidationError(f"Unknown loan source: {source_type}")


class LoanService:
    """Creates loans and moves them through their lifecycle."""

    @staticmethod
    def create_loan(
        amount: int,
        source: LoanSource,
        borrower: Borrower,
        due_date: int | None = None,
        db: Client | None = None,
    ) -> Loan:
        """Record a loan request waiting for the lender's approval."""
        if db is None:
            db = firestore.client()
        if amount <= 0:
            raise ValidationError("Loan amount must be positive.")
        source_type = source.get("type", "")
        collection = _collection_for(source_type)
        source = cast(LoanSource, dict(source))

        if source_type == "guild":
            if not source.get("guild"):
                guild = GuildService.get_guild(db) or {}
                source["guild"] = guild.get("name", DEFAULT_GUILD_NAME)
        else:
            if not source.get("merchantId"):
                raise ValidationError("A merchant loan needs a merchant.")
            if source["merchantId"] == borrower["uid"]:
                raise ValidationError("You cannot borrow from yourself.")

        ref = db.collection(collection).document()
        timestamp = now_ms()
        loan: Loan = {
            "loanId": ref.id,
            "amount": amount,
            "source": source,
            "borrower": borrower,
            "status": LoanStatus.WAITING_APPROVAL.value,
            "dueDate": due_date,
            "createdAt": timestamp,
            "updatedAt": timestamp,
        }
        ref.set({**loan, "type": source_type})
        FeedService.add_loan_feed(dict(loan), "create", borrower["name"], db=db)
        logger.info(f"Loan {ref.id} requested by {borrower['uid']} ({source_type})")
        return loan

    @staticmethod
    def _find_loan(loan_id: str, db: Client) -> tuple[DocumentReference, Loan]:
        for collection in (GUILD_LOANS_COLLECTION, MERCHANT_LOANS_COLLECTION):
            ref = db.collection(collection).document(loan_id)
            doc = cast(Any, ref.get())
            if doc.exists and doc.to_dict():
                return ref, cast(Loan, doc.to_dict())
        raise NotFoundError("Loan not found.")

    @staticmethod
    def get_loan(loan_id: str, db: Client | None = None) -> Loan:
        """Fetch a loan from either loan collection."""
        if db is None:
            db = firestore.client()
        return LoanService._find_loan(loan_id, db)[1]

    @staticmethod
    def _check_lender(loan: Loan, uid: str, db: Client) -> None:
        source = loan.get("source") or {}
        if source.get("type") == "guild":
            if not GuildService.is_guild_leader(uid, db=db):
                raise PermissionDeniedError("Only guild leaders can manage guild loans.")
        elif source.get("merchantId") != uid:
            raise PermissionDeniedError("Only the lending merchant can manage this loan.")

    @staticmethod
    def _transition(
        loan_id: str,
        target: LoanStatus,
        action: str,
        actor_uid: str,
        db: Client,
        extra: dict[str, Any] | None = None,
    ) -> Loan:
        ref, loan = LoanService._find_loan(loan_id, db)
        check_transition(loan.get("status", ""), target.value)

        updates: dict[str, Any] = {"status": target.value, "updatedAt": now_ms()}
        if extra:
            updates.update(extra)
        ref.update(updates)
        loan = cast(Loan, {**loan, **updates})

        actor = get_discord_name(db, actor_uid, fallback=actor_uid)
        FeedService.add_loan_feed(dict(loan), action, actor, db=db)
        logger.info(f"Loan {loan_id} moved to {target.value} by {actor_uid}")
        return loan

    @staticmethod
    def approve_loan(loan_id: str, approver_uid: str, db: Client | None = None) -> Loan:
        """Approve a waiting loan, drawing merchant loans from their trade."""
        if db is None:
            db = firestore.client()
        ref, loan = LoanService._find_loan(loan_id, db)
        LoanService._check_lender(loan, approver_uid, db)
        check_transition(loan.get("status", ""), LoanStatus.ACTIVE.value)

        source = loan.get("source") or {}
        trade_id = source.get("tradeId")
        if source.get("type") == "merchant" and trade_id:
            trade_ref = db.collection(TRADE_COLLECTION).document(trade_id)
            trade_doc = cast(Any, trade_ref.get())
            trade = trade_doc.to_dict() if trade_doc.exists else None
            if trade:
                amount_left = trade.get("amountLeft", 0) - loan.get("amount", 0)
                if amount_left < 0:
                    raise ValidationError("Not enough gold left in the trade.")
                trade_ref.update(
                    {
                        "amountLeft": amount_left,
                        "status": "closed" if amount_left == 0 else "open",
                        "updatedAt": now_ms(),
                    }
                )

        timestamp = now_ms()
        return LoanService._transition(
            loan_id,
            LoanStatus.ACTIVE,
            "approve",
            approver_uid,
            db,
            extra={"approvedBy": approver_uid, "approvedAt": timestamp},
        )

    @staticmethod
    def reject_loan(loan_id: str, approver_uid: str, db: Client | None = None) -> Loan:
        """Reject a waiting loan."""
        if db is None:
            db = firestore.client()
        _, loan = LoanService._find_loan(loan_id, db)
        LoanService._check_lender(loan, approver_uid, db)
        return LoanService._transition(
            loan_id, LoanStatus.REJECTED, "reject", approver_uid, db
        )

    @staticmethod
    def mark_returned(loan_id: str, borrower_uid: str, db: Client | None = None) -> Loan:
        """Borrower reports the gold was paid back."""
        if db is None:
            db = firestore.client()
        _, loan = LoanService._find_loan(loan_id, db)
        if (loan.get("borrower") or {}).get("uid") != borrower_uid:
            raise PermissionDeniedError("Only the borrower can report a repayment.")
        return LoanService._transition(
            loan_id,
            LoanStatus.RETURNED,
            "return",
            borrower_uid,
            db,
            extra={"returnedAt": now_ms()},
        )

    @staticmethod
    def complete_loan(loan_id: str, approver_uid: str, db: Client | None = None) -> Loan:
        """Lender confirms the repayment arrived."""
        if db is None:
            db = firestore.client()
        _, loan = LoanService._find_loan(loan_id, db)
        LoanService._check_lender(loan, approver_uid, db)
        return LoanService._transition(
            loan_id,
            LoanStatus.COMPLETED,
            "complete",
            approver_uid,
            db,
            extra={"completedAt": now_ms()},
        )

    @staticmethod
    def reopen_loan(loan_id: str, approver_uid: str, db: Client | None = None) -> Loan:
        """Lender reports the repayment did not arrive."""
        if db is None:
            db = firestore.client()
        _, loan = LoanService._find_loan(loan_id, db)
        LoanService._check_lender(loan, approver_uid, db)
        return LoanService._transition(
            loan_id, LoanStatus.ACTIVE, "reopen", approver_uid, db
        )

    @staticmethod
    def _list(
        collection: str, db: Client, filters: dict[str, Any], status: str | None
    ) -> list[dict[str, Any]]:
        """Query a loan collection on equality filters, newest first."""
        query: Any = db.collection(collection)
        if status is not None:
            filters = {**filters, "status": status}
        for field_path, value in filters.items():
            query = query.where(filter=firestore.FieldFilter(field_path, "==", value))
        loans = stream_documents(query)
        loans.sort(key=lambda loan: loan.get("createdAt", 0), reverse=True)
        return loans

    @staticmethod
    def list_borrower_loans(
        uid: str, status: str | None = None, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """List a user's loans from both the guild and merchants."""
        if db is None:
            db = firestore.client()
        loans = []
        for collection in (GUILD_LOANS_COLLECTION, MERCHANT_LOANS_COLLECTION):
            loans.extend(LoanService._list(collection, db, {"borrower.uid": uid}, status))
        loans.sort(key=lambda loan: loan.get("createdAt", 0), reverse=True)
        return loans

    @staticmethod
    def list_merchant_loans(
        merchant_id: str, status: str | None = None, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """List loans a merchant has been asked for."""
        if db is None:
            db = firestore.client()
        return LoanService._list(
            MERCHANT_LOANS_COLLECTION, db, {"source.merchantId": merchant_id}, status
        )

    @staticmethod
    def list_guild_loans(
        status: str | None = None, db: Client | None = None
    ) -> list[dict[str, Any]]:
        """List loans drawn from the guild."""
        if db is None:
            db = firestore.client()
        return LoanService._list(GUILD_LOANS_COLLECTION, db, {}, status)
