from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ResolveAllResult:
    resolved: int = 0
    skipped: int = 0
    errors: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"resolved": self.resolved, "skipped": self.skipped, "errors": self.errors}


@dataclass(frozen=True)
class QueueStats:
    total: int
    reconciled: int
    unreconciled: int
    with_issues: int
    issue_types: Dict[str, int]
    severity_counts: Dict[str, int]
    oldest_unreconciled: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "reconciled": self.reconciled,
            "unreconciled": self.unreconciled,
            "withIssues": self.with_issues,
            "issueTypes": self.issue_types,
            "severityCounts": self.severity_counts,
            "oldestUnreconciled": self.oldest_unreconciled,
        }
