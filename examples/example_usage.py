"""Example: drive the service layer directly (no Flask).

Controllers are thin; the attendance rules live in the services.
"""

import importlib
from datetime import date

from hostel_attendance.config import get_settings_module
from hostel_attendance.container import build_container
from hostel_attendance.core.enums import EntryType
from hostel_attendance.leaves.model import Override


def main():
    settings = importlib.import_module(get_settings_module())
    container = build_container(db_config=settings.DB_CONFIG)

    outcome = container.attendance_service.mark_attendance(1, EntryType.IN, "Back from class")
    print(outcome.to_dict())

    # Person 3 is on leave in the demo seed; the first call returns a conflict.
    conflict = container.attendance_service.mark_attendance(3, EntryType.IN)
    print(conflict.to_dict())
    overridden = container.attendance_service.mark_attendance(
        3, EntryType.IN, resolution=Override(reason="Came back for exams")
    )
    print(overridden.to_dict())

    print(container.automark_service.run_for_date(date.today()).to_dict())
    print([e.to_dict() for e in container.reconciliation_queue.list(date.today())])


if __name__ == "__main__":
    main()
