from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class AuditEntry:
    """One administrative action worth keeping a trail of."""

    model: str
    action: str
    reason: str
    ref_id: Optional[int] = None
    actor: Optional[str] = None
    payload: dict = field(default_factory=dict)
    created_at: Optional[datetime] = None
    audit_id: Optional[int] = None
