from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import HostelState, PersonKind
from .model import Person


class PersonRepository(Protocol):
    def get_by_id(self, person_id: int) -> Optional[Person]:
        raise NotImplementedError

    def list_active(self, *, kind: Optional[PersonKind] = None, block: Optional[str] = None) -> Sequence[Person]:
        raise NotImplementedError

    def update_state(self, person_id: int, *, state: HostelState, at: datetime) -> bool:
        raise NotImplementedError

    def update_all_states(self, *, state: HostelState, at: datetime, kind: Optional[PersonKind] = None) -> int:
        """Bulk overwrite for active persons. Returns the number of rows changed."""

        raise NotImplementedError
