"""
Approvals Router - submit documents to a workflow and decide each step
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..dependencies import get_approval_service
from ..services.approvals import ApprovalService

router = APIRouter()


class ApprovalSubmit(BaseModel):
    document_id: UUID
    workflow_id: UUID
    requested_by: Optional[UUID] = None


class ApproveRequest(BaseModel):
    comments: Optional[str] = None


class RejectRequest(BaseModel):
    rejection_reason: str = Field(..., min_length=1)
    comments: Optional[str] = None


@router.post("", status_code=201)
async def submit_for_approval(body: ApprovalSubmit, service: ApprovalService = Depends(get_approval_service)):
    """Open the first step of a workflow for a document"""
    approval = await service.submit(
        str(body.document_id),
        str(body.workflow_id),
        requested_by=str(body.requested_by) if body.requested_by else None,
    )
    return {"success": True, "approval": approval}


@router.get("")
async def list_approvals(
    document_id: Optional[UUID] = Query(default=None),
    approver_id: Optional[UUID] = Query(default=None),
    status: Optional[str] = Query(default=None, pattern="^(pending|approved|rejected)$"),
    service: ApprovalService = Depends(get_approval_service),
):
    approvals = await service.list_approvals(
        document_id=str(document_id) if document_id else None,
        approver_id=str(approver_id) if approver_id else None,
        status=status,
    )
    return {"approvals": approvals}


@router.post("/{approval_id}/approve")
async def approve(
    approval_id: UUID,
    body: Optional[ApproveRequest] = None,
    service: ApprovalService = Depends(get_approval_service),
):
    body = body or ApproveRequest()
    outcome = await service.approve(str(approval_id), comments=body.comments)
    return {"success": True, **outcome}


@router.post("/{approval_id}/reject")
async def reject(
    approval_id: UUID,
    body: RejectRequest,
    service: ApprovalService = Depends(get_approval_service),
):
    outcome = await service.reject(str(approval_id), body.rejection_reason, comments=body.comments)
    return {"success": True, **outcome}
