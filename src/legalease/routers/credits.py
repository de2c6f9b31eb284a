"""
Credits Router - balance, history, top-ups and cost estimates
"""
from typing import Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..errors import ValidationFailed
from ..dependencies import get_credit_service
from ..services.converter import CONVERSION_TYPES
from ..services.credits import CreditService, estimate_credits

logger = structlog.get_logger()
router = APIRouter()


class CreditGrant(BaseModel):
    amount: int = Field(..., gt=0)
    type: str = Field(default="purchase", pattern="^(purchase|grant|refund)$")
    description: Optional[str] = None
    reference: Optional[str] = Field(default=None, max_length=255)


@router.get("/estimate")
async def estimate(
    length: int = Query(..., ge=0),
    conversion_type: str = Query(..., alias="conversionType"),
):
    """Cost of a conversion without touching the balance"""
    if conversion_type not in CONVERSION_TYPES:
        raise ValidationFailed("Invalid conversion type")
    return {
        "length": length,
        "conversionType": conversion_type,
        "creditsNeeded": estimate_credits(length, conversion_type),
    }


@router.get("/{user_id}")
async def get_credits(user_id: UUID, service: CreditService = Depends(get_credit_service)):
    account = await service.get_account(str(user_id))
    return {
        "userId": str(account["id"]),
        "balance": account["credits_balance"],
        "totalPurchased": account["total_credits_purchased"],
        "updatedAt": account["updated_at"],
    }


@router.get("/{user_id}/transactions")
async def list_transactions(
    user_id: UUID,
    limit: int = Query(default=50, ge=1, le=200),
    service: CreditService = Depends(get_credit_service),
):
    await service.get_account(str(user_id))
    transactions = await service.list_transactions(str(user_id), limit)
    return {"transactions": transactions, "total": len(transactions)}


@router.post("/{user_id}/grant")
async def grant_credits(
    user_id: UUID,
    body: CreditGrant,
    service: CreditService = Depends(get_credit_service),
):
    """Record a completed purchase (or a manual grant) and credit the balance"""
    balance = await service.grant(
        str(user_id),
        body.amount,
        transaction_type=body.type,
        description=body.description or f"Credit {body.type}: {body.amount} credits",
        reference_id=body.reference,
    )
    return {"success": True, "balance": balance, "amount": body.amount}
