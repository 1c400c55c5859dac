from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import AuditEntry


class AuditRepository(Protocol):
    def log(self, entry: AuditEntry) -> int:
        raise NotImplementedError

    def list_recent(self, *, model: Optional[str] = None, limit: int = 100) -> Sequence[AuditEntry]:
        raise NotImplementedError
