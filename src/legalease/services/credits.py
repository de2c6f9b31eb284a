"""
Credit Service - prepaid credit balance and its transaction log.

The balance is only ever changed by a single conditional UPDATE, so two
concurrent charges cannot both pass a stale balance check.
"""
import json
import math
from typing import Optional, Dict, List, Any

import structlog
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..errors import InsufficientCredits, NotFound, ValidationFailed

logger = structlog.get_logger()


def estimate_credits(text_length: int, conversion_type: str) -> int:
    """
    Credits needed for a conversion.

    One credit per started block of ``CREDITS_CHARS_PER_CREDIT`` characters,
    plus a surcharge for legal-to-plain, which also extracts key terms and a
    summary. Never less than one credit.
    """
    blocks = math.ceil(max(text_length, 0) / settings.CREDITS_CHARS_PER_CREDIT)
    cost = max(blocks, 1)
    if conversion_type == "legal-to-plain":
        cost += settings.CREDITS_ANALYSIS_SURCHARGE
    return cost


class CreditService:
    """Balance reads and writes for one request's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_balance(self, user_id: str) -> Optional[int]:
        """Current balance, or None for an unknown user."""
        result = await self.db.execute(
            text("SELECT credits_balance FROM profiles WHERE id = :id"),
            {"id": user_id}
        )
        row = result.fetchone()
        return int(row[0]) if row else None

    async def get_account(self, user_id: str) -> Dict[str, Any]:
        result = await self.db.execute(
            text("""
                SELECT id, email, full_name, credits_balance, total_credits_purchased, updated_at
                FROM profiles WHERE id = :id
            """),
            {"id": user_id}
        )
        row = result.mappings().first()
        if not row:
            raise NotFound("User not found")
        return dict(row)

    async def charge(
        self,
        user_id: str,
        amount: int,
        description: str,
        document_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> int:
        """
        Debit ``amount`` credits and log a usage transaction.

        Returns the new balance. Raises InsufficientCredits when the balance
        is lower than ``amount`` at the moment of the update.
        """
        result = await self.db.execute(
            text("""
                UPDATE profiles
                SET credits_balance = credits_balance - :amount, updated_at = NOW()
                WHERE id = :id AND credits_balance >= :amount
                RETURNING credits_balance
            """),
            {"id": user_id, "amount": amount}
        )
        row = result.fetchone()
        if row is None:
            available = await self.get_balance(user_id)
            if available is None:
                raise NotFound("User not found")
            logger.warning("Credit charge rejected", user_id=user_id, amount=amount, available=available)
            raise InsufficientCredits(amount, available)

        await self._log_transaction(user_id, -amount, "usage", description, document_id=document_id,
                                    metadata=metadata)
        new_balance = int(row[0])
        logger.info("Credits charged", user_id=user_id, amount=amount, balance=new_balance)
        return new_balance

    async def grant(
        self,
        user_id: str,
        amount: int,
        transaction_type: str = "purchase",
        description: str = "Credit purchase",
        reference_id: Optional[str] = None,
    ) -> int:
        """Credit ``amount`` to the balance; purchases also count toward the lifetime total."""
        if amount <= 0:
            raise ValidationFailed("Amount must be positive")

        result = await self.db.execute(
            text("""
                UPDATE profiles
                SET credits_balance = credits_balance + :amount,
                    total_credits_purchased = total_credits_purchased
                        + CASE WHEN :is_purchase THEN :amount ELSE 0 END,
                    updated_at = NOW()
                WHERE id = :id
                RETURNING credits_balance
            """),
            {"id": user_id, "amount": amount, "is_purchase": transaction_type == "purchase"}
        )
        row = result.fetchone()
        if row is None:
            raise NotFound("User not found")

        await self._log_transaction(user_id, amount, transaction_type, description, reference_id=reference_id)
        logger.info("Credits granted", user_id=user_id, amount=amount, type=transaction_type)
        return int(row[0])

    async def list_transactions(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            text("""
                SELECT id, amount, type, description, reference_id, document_id, metadata, created_at
                FROM credit_transactions
                WHERE user_id = :user_id
                ORDER BY created_at DESC
                LIMIT :limit
            """),
            {"user_id": user_id, "limit": limit}
        )
        return [dict(row) for row in result.mappings().all()]

    async def _log_transaction(
        self,
        user_id: str,
        amount: int,
        transaction_type: str,
        description: str,
        document_id: Optional[str] = None,
        reference_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        await self.db.execute(
            text("""
                INSERT INTO credit_transactions
                (user_id, amount, type, description, reference_id, document_id, metadata)
                VALUES (:user_id, :amount, :type, :description, :reference_id, :document_id,
                        CAST(:metadata AS jsonb))
            """),
            {
                "user_id": user_id, "amount": amount, "type": transaction_type,
                "description": description, "reference_id": reference_id,
                "document_id": document_id, "metadata": json.dumps(metadata or {})
            }
        )
