"""
Approval Service - workflows, their ordered steps and per-step decisions.

An approval record binds one document to one workflow step. Decisions are
terminal: a record moves from ``pending`` to ``approved`` or ``rejected``
exactly once. Approving a step opens a new pending record for the next step
of the same workflow; rejecting ends the chain.
"""
import json
from collections import defaultdict
from typing import Optional, Dict, List, Any

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import Conflict, NotFound, ValidationFailed

logger = structlog.get_logger()

APPROVAL_COLUMNS = """
    id, document_id, workflow_id, step_id, step_order, approver_id, requested_by,
    status, approved_at, rejected_at, created_at
"""

STEP_COLUMNS = "id, workflow_id, step_order, name, description, approver_id, required"


def signoff_note(rejection_reason: Optional[str], comments: Optional[str]) -> Optional[str]:
    """Join a rejection reason and free-form comments into one audit note"""
    parts = [p for p in (rejection_reason, comments) if p]
    return "\n\n".join(parts) if parts else None


class ApprovalService:
    """Workflow and approval operations for one request's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Workflows

    async def create_workflow(
        self,
        organization_id: str,
        name: str,
        steps: List[Dict[str, Any]],
        description: Optional[str] = None,
        trigger_conditions: Optional[Dict[str, Any]] = None,
        created_by: Optional[str] = None,
    ) -> Dict[str, Any]:
        result = await self.db.execute(
            text("""
                INSERT INTO approval_workflows
                (organization_id, name, description, trigger_conditions, created_by)
                VALUES (:organization_id, :name, :description, CAST(:trigger_conditions AS jsonb), :created_by)
                RETURNING id, organization_id, name, description, trigger_conditions, is_active,
                          created_by, created_at, updated_at
            """),
            {
                "organization_id": organization_id, "name": name, "description": description,
                "trigger_conditions": json.dumps(trigger_conditions or {}), "created_by": created_by,
            }
        )
        workflow = dict(result.mappings().one())

        created_steps = []
        for index, step in enumerate(steps, start=1):
            step_result = await self.db.execute(
                text(f"""
                    INSERT INTO workflow_steps
                    (workflow_id, step_order, name, description, approver_id, required)
                    VALUES (:workflow_id, :step_order, :name, :description, :approver_id, :required)
                    RETURNING {STEP_COLUMNS}
                """),
                {
                    "workflow_id": workflow["id"], "step_order": index,
                    "name": step["name"], "description": step.get("description"),
                    "approver_id": step["approver_id"], "required": step.get("required", True),
                }
            )
            created_steps.append(dict(step_result.mappings().one()))

        workflow["workflow_steps"] = created_steps
        logger.info("Workflow created", workflow_id=str(workflow["id"]), steps=len(created_steps))
        return workflow

    async def list_workflows(self, organization_id: Optional[str] = None,
                             is_active: Optional[bool] = None) -> List[Dict[str, Any]]:
        conditions = ["1=1"]
        params: Dict[str, Any] = {}

        if organization_id:
            conditions.append("organization_id = :organization_id")
            params["organization_id"] = organization_id

        if is_active is not None:
            conditions.append("is_active = :is_active")
            params["is_active"] = is_active

        result = await self.db.execute(
            text(f"""
                SELECT id, organization_id, name, description, trigger_conditions, is_active,
                       created_by, created_at, updated_at
                FROM approval_workflows
                WHERE {" AND ".join(conditions)}
                ORDER BY created_at DESC
            """),
            params
        )
        workflows = [dict(row) for row in result.mappings().all()]
        if not workflows:
            return []

        steps_result = await self.db.execute(
            text(f"""
                SELECT {STEP_COLUMNS} FROM workflow_steps
                WHERE workflow_id = ANY(:ids)
                ORDER BY step_order
            """),
            {"ids": [w["id"] for w in workflows]}
        )
        steps_by_workflow = defaultdict(list)
        for step in steps_result.mappings().all():
            steps_by_workflow[step["workflow_id"]].append(dict(step))

        for workflow in workflows:
            workflow["workflow_steps"] = steps_by_workflow.get(workflow["id"], [])
        return workflows

    async def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        result = await self.db.execute(
            text("""
                SELECT id, organization_id, name, description, trigger_conditions, is_active,
                       created_by, created_at, updated_at
                FROM approval_workflows WHERE id = :id
            """),
            {"id": workflow_id}
        )
        row = result.mappings().first()
        if not row:
            raise NotFound("Workflow not found")
        workflow = dict(row)
        workflow["workflow_steps"] = await self._steps(workflow_id)
        return workflow

    async def _steps(self, workflow_id: str) -> List[Dict[str, Any]]:
        result = await self.db.execute(
            text(f"SELECT {STEP_COLUMNS} FROM workflow_steps WHERE workflow_id = :id ORDER BY step_order"),
            {"id": workflow_id}
        )
        return [dict(row) for row in result.mappings().all()]

    # Approvals

    async def submit(self, document_id: str, workflow_id: str,
                     requested_by: Optional[str] = None) -> Dict[str, Any]:
        """Open the approval record for the first step of a workflow"""
        result = await self.db.execute(
            text("SELECT id FROM documents WHERE id = :id"),
            {"id": document_id}
        )
        if not result.fetchone():
            raise NotFound("Document not found")

        workflow = await self.get_workflow(workflow_id)
        if not workflow["is_active"]:
            raise ValidationFailed("Workflow is not active")
        if not workflow["workflow_steps"]:
            raise ValidationFailed("Workflow has no steps")

        result = await self.db.execute(
            text("""
                SELECT id FROM document_approvals
                WHERE document_id = :document_id AND workflow_id = :workflow_id AND status = 'pending'
            """),
            {"document_id": document_id, "workflow_id": workflow_id}
        )
        if result.fetchone():
            raise Conflict("Document already has a pending approval in this workflow")

        approval = await self._open_step(document_id, workflow["workflow_steps"][0], requested_by)
        logger.info("Document submitted for approval", document_id=document_id, workflow_id=workflow_id)
        return approval

    async def _open_step(self, document_id: str, step: Dict[str, Any],
                         requested_by: Optional[str]) -> Dict[str, Any]:
        try:
            result = await self.db.execute(
                text(f"""
                    INSERT INTO document_approvals
                    (document_id, workflow_id, step_id, step_order, approver_id, requested_by)
                    VALUES (:document_id, :workflow_id, :step_id, :step_order, :approver_id, :requested_by)
                    RETURNING {APPROVAL_COLUMNS}
                """),
                {
                    "document_id": document_id, "workflow_id": step["workflow_id"], "step_id": step["id"],
                    "step_order": step["step_order"], "approver_id": step["approver_id"],
                    "requested_by": requested_by,
                }
            )
        except IntegrityError as e:
            # Another submit opened the pending record first
            logger.warning("Duplicate pending approval", document_id=document_id, workflow_id=step["workflow_id"])
            raise Conflict("Document already has a pending approval in this workflow") from e
        return dict(result.mappings().one())

    async def list_approvals(self, document_id: Optional[str] = None, approver_id: Optional[str] = None,
                             status: Optional[str] = None) -> List[Dict[str, Any]]:
        conditions = ["1=1"]
        params: Dict[str, Any] = {}

        if document_id:
            conditions.append("document_id = :document_id")
            params["document_id"] = document_id
        if approver_id:
            conditions.append("approver_id = :approver_id")
            params["approver_id"] = approver_id
        if status:
            conditions.append("status = :status")
            params["status"] = status

        result = await self.db.execute(
            text(f"""
                SELECT {APPROVAL_COLUMNS} FROM document_approvals
                WHERE {" AND ".join(conditions)}
                ORDER BY created_at DESC, step_order DESC
            """),
            params
        )
        return [dict(row) for row in result.mappings().all()]

    async def approve(self, approval_id: str, comments: Optional[str] = None) -> Dict[str, Any]:
        approval = await self._decide(approval_id, "approved")
        signoff = await self._sign(approval, "approved", comments)

        next_step = await self._next_step(approval["workflow_id"], approval["step_order"])
        next_approval = None
        if next_step:
            next_approval = await self._open_step(str(approval["document_id"]), next_step,
                                                  approval["requested_by"])

        logger.info("Approval granted",
                    approval_id=approval_id,
                    document_id=str(approval["document_id"]),
                    next_step=next_step["step_order"] if next_step else None)
        return {"approval": approval, "signoff": signoff, "next_approval": next_approval}

    async def reject(self, approval_id: str, rejection_reason: str,
                     comments: Optional[str] = None) -> Dict[str, Any]:
        if not rejection_reason or not rejection_reason.strip():
            raise ValidationFailed("Rejection reason is required")

        approval = await self._decide(approval_id, "rejected")
        signoff = await self._sign(approval, "rejected", signoff_note(rejection_reason, comments))

        logger.info("Approval rejected", approval_id=approval_id, document_id=str(approval["document_id"]))
        return {"approval": approval, "signoff": signoff}

    async def _decide(self, approval_id: str, decision: str) -> Dict[str, Any]:
        timestamp_column = "approved_at" if decision == "approved" else "rejected_at"
        result = await self.db.execute(
            text(f"""
                UPDATE document_approvals
                SET status = :decision, {timestamp_column} = NOW()
                WHERE id = :id AND status = 'pending'
                RETURNING {APPROVAL_COLUMNS}
            """),
            {"id": approval_id, "decision": decision}
        )
        row = result.mappings().first()
        if row:
            return dict(row)

        result = await self.db.execute(
            text("SELECT status FROM document_approvals WHERE id = :id"),
            {"id": approval_id}
        )
        existing = result.fetchone()
        if not existing:
            raise NotFound("Approval not found")
        raise Conflict("Approval already decided", status=existing[0])

    async def _sign(self, approval: Dict[str, Any], decision: str,
                    comments: Optional[str]) -> Dict[str, Any]:
        result = await self.db.execute(
            text("""
                INSERT INTO approval_signoffs (approval_id, signer_id, decision, comments)
                VALUES (:approval_id, :signer_id, :decision, :comments)
                RETURNING id, approval_id, signer_id, decision, comments, signed_at
            """),
            {"approval_id": approval["id"], "signer_id": approval["approver_id"],
             "decision": decision, "comments": comments}
        )
        return dict(result.mappings().one())

    async def _next_step(self, workflow_id: str, step_order: int) -> Optional[Dict[str, Any]]:
        result = await self.db.execute(
            text(f"""
                SELECT {STEP_COLUMNS} FROM workflow_steps
                WHERE workflow_id = :workflow_id AND step_order > :step_order
                ORDER BY step_order
                LIMIT 1
            """),
            {"workflow_id": workflow_id, "step_order": step_order}
        )
        row = result.mappings().first()
        return dict(row) if row else None
