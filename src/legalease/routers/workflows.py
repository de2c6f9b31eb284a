"""
Workflows Router - approval workflows and their steps
"""
from typing import Optional, List, Dict, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from ..dependencies import get_approval_service
from ..services.approvals import ApprovalService

router = APIRouter()


class WorkflowStepCreate(BaseModel):
    """A step; its order is its position in the request"""
    name: str = Field(..., min_length=1, max_length=255)
    approver_id: UUID
    description: Optional[str] = None
    required: bool = True


class WorkflowCreate(BaseModel):
    organization_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    trigger_conditions: Dict[str, Any] = Field(default_factory=dict)
    steps: List[WorkflowStepCreate] = Field(default_factory=list)
    created_by: Optional[UUID] = None


@router.get("")
async def list_workflows(
    organization_id: Optional[UUID] = Query(default=None),
    is_active: Optional[bool] = Query(default=None),
    service: ApprovalService = Depends(get_approval_service),
):
    workflows = await service.list_workflows(
        organization_id=str(organization_id) if organization_id else None,
        is_active=is_active,
    )
    return {"workflows": workflows}


@router.post("", status_code=201)
async def create_workflow(body: WorkflowCreate, service: ApprovalService = Depends(get_approval_service)):
    workflow = await service.create_workflow(
        organization_id=str(body.organization_id),
        name=body.name,
        description=body.description,
        trigger_conditions=body.trigger_conditions,
        steps=[
            {**step.model_dump(), "approver_id": str(step.approver_id)}
            for step in body.steps
        ],
        created_by=str(body.created_by) if body.created_by else None,
    )
    return {"success": True, "workflow": workflow}


@router.get("/{workflow_id}")
async def get_workflow(workflow_id: UUID, service: ApprovalService = Depends(get_approval_service)):
    return {"workflow": await service.get_workflow(str(workflow_id))}
