"""
Database schema (PostgreSQL).

Statements are idempotent and applied in order by ``apply_schema``.
"""

SCHEMA_STATEMENTS = [
    "CREATE EXTENSION IF NOT EXISTS pgcrypto",
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        email TEXT UNIQUE,
        full_name TEXT,
        credits_balance INTEGER NOT NULL DEFAULT 0 CHECK (credits_balance >= 0),
        total_credits_purchased INTEGER NOT NULL DEFAULT 0,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS organizations (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        name TEXT NOT NULL,
        slug TEXT UNIQUE NOT NULL,
        plan TEXT NOT NULL DEFAULT 'free',
        max_users INTEGER NOT NULL DEFAULT 5,
        max_documents INTEGER NOT NULL DEFAULT 100,
        max_storage_gb INTEGER NOT NULL DEFAULT 1,
        features JSONB NOT NULL DEFAULT '[]'::jsonb,
        settings JSONB NOT NULL DEFAULT '{}'::jsonb,
        billing_email TEXT,
        subscription_status TEXT NOT NULL DEFAULT 'active',
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS organization_members (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
        user_id UUID NOT NULL,
        role TEXT NOT NULL DEFAULT 'member',
        department TEXT,
        joined_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (organization_id, user_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS teams (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        description TEXT,
        specialty TEXT,
        color TEXT,
        settings JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS team_members (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        team_id UUID NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
        user_id UUID NOT NULL,
        role TEXT NOT NULL DEFAULT 'member',
        added_by UUID,
        added_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (team_id, user_id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS documents (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        user_id UUID NOT NULL,
        organization_id UUID REFERENCES organizations(id) ON DELETE CASCADE,
        title TEXT NOT NULL,
        original_content TEXT NOT NULL DEFAULT '',
        converted_content TEXT,
        conversion_type TEXT CHECK (conversion_type IN ('legal-to-plain', 'plain-to-legal')),
        document_type TEXT NOT NULL DEFAULT 'other'
            CHECK (document_type IN ('contract', 'agreement', 'terms', 'policy', 'other')),
        status TEXT NOT NULL DEFAULT 'pending'
            CHECK (status IN ('pending', 'processing', 'completed', 'failed')),
        credits_used INTEGER NOT NULL DEFAULT 0,
        key_terms JSONB,
        summary TEXT,
        tags TEXT[] NOT NULL DEFAULT '{}',
        original_file TEXT,
        converted_file TEXT,
        file_type TEXT,
        word_count INTEGER NOT NULL DEFAULT 0,
        character_count INTEGER NOT NULL DEFAULT 0,
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        is_archived BOOLEAN NOT NULL DEFAULT FALSE,
        archived_at TIMESTAMPTZ,
        archived_by UUID,
        archive_reason TEXT,
        recalled_at TIMESTAMPTZ,
        recalled_by UUID,
        recall_reason TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_documents_user_id ON documents(user_id)",
    "CREATE INDEX IF NOT EXISTS idx_documents_created_at ON documents(created_at DESC)",
    "CREATE INDEX IF NOT EXISTS idx_documents_archived ON documents(is_archived, archived_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS document_versions (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        document_id UUID NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
        version_number INTEGER NOT NULL,
        original_content TEXT NOT NULL DEFAULT '',
        converted_content TEXT,
        notes TEXT,
        created_by UUID,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        UNIQUE (document_id, version_number)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS credit_transactions (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
        amount INTEGER NOT NULL,
        type TEXT NOT NULL CHECK (type IN ('usage', 'purchase', 'refund', 'grant')),
        description TEXT NOT NULL,
        reference_id TEXT,
        document_id UUID REFERENCES documents(id) ON DELETE SET NULL,
        metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_credit_transactions_user ON credit_transactions(user_id, created_at DESC)",
    """
    CREATE TABLE IF NOT EXISTS approval_workflows (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        organization_id UUID NOT NULL REFERENCES organizations(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        description TEXT,
        trigger_conditions JSONB NOT NULL DEFAULT '{}'::jsonb,
        is_active BOOLEAN NOT NULL DEFAULT TRUE,
        created_by UUID,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS workflow_steps (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        workflow_id UUID NOT NULL REFERENCES approval_workflows(id) ON DELETE CASCADE,
        step_order INTEGER NOT NULL,
        name TEXT NOT NULL,
        description TEXT,
        approver_id UUID NOT NULL,
        required BOOLEAN NOT NULL DEFAULT TRUE,
        UNIQUE (workflow_id, step_order)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS document_approvals (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        document_id UUID NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
        workflow_id UUID NOT NULL REFERENCES approval_workflows(id) ON DELETE CASCADE,
        step_id UUID NOT NULL REFERENCES workflow_steps(id) ON DELETE CASCADE,
        step_order INTEGER NOT NULL,
        approver_id UUID NOT NULL,
        requested_by UUID,
        status TEXT NOT NULL DEFAULT 'pending' CHECK (status IN ('pending', 'approved', 'rejected')),
        approved_at TIMESTAMPTZ,
        rejected_at TIMESTAMPTZ,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    "ALTER TABLE document_approvals DROP CONSTRAINT IF EXISTS document_approvals_document_id_step_id_key",
    # At most one open approval per document and workflow
    """
    CREATE UNIQUE INDEX IF NOT EXISTS idx_document_approvals_one_pending
    ON document_approvals(document_id, workflow_id) WHERE status = 'pending'
    """,
    "CREATE INDEX IF NOT EXISTS idx_document_approvals_approver ON document_approvals(approver_id, status)",
    """
    CREATE TABLE IF NOT EXISTS approval_signoffs (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        approval_id UUID NOT NULL UNIQUE REFERENCES document_approvals(id) ON DELETE CASCADE,
        signer_id UUID NOT NULL,
        decision TEXT NOT NULL CHECK (decision IN ('approved', 'rejected')),
        comments TEXT,
        signed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS document_templates (
        id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
        user_id UUID NOT NULL,
        name TEXT NOT NULL,
        category TEXT NOT NULL,
        description TEXT,
        content TEXT NOT NULL,
        branding_config JSONB NOT NULL DEFAULT '{}'::jsonb,
        legal_clauses JSONB NOT NULL DEFAULT '[]'::jsonb,
        is_public BOOLEAN NOT NULL DEFAULT FALSE,
        created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    )
    """,
]
