"""
API Routers
"""
from . import (
    approvals, archive, branding, convert, credits, documents, organizations,
    reports, search, teams, templates, workflows,
)

__all__ = [
    'approvals', 'archive', 'branding', 'convert', 'credits', 'documents', 'organizations',
    'reports', 'search', 'teams', 'templates', 'workflows',
]
