"""Append-only audit trail of mutating operations."""

from ._models import AuditRecord
from ._trail import AUDIT_FILE_NAME, AuditTrail

__all__ = ["AUDIT_FILE_NAME", "AuditRecord", "AuditTrail"]
