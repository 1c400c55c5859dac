from __future__ import annotations

from datetime import timedelta
from typing import Optional

from ...core.constants import DUPLICATE_WINDOW_SECONDS, LONG_STAY_HOURS, SHORT_STAY_SECONDS
from ...core.enums import EntryType, IssueSeverity, IssueType
from ..model import ValidationIssue
from .base import IssueRule, RuleContext


class DuplicateEntryRule(IssueRule):
    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        prev = ctx.previous_same_day
        if not prev or prev.entry_type != ctx.entry_type:
            return None
        if ctx.timestamp - prev.timestamp > timedelta(seconds=DUPLICATE_WINDOW_SECONDS):
            return None
        return ValidationIssue(
            type=IssueType.DUPLICATE_ENTRY,
            severity=IssueSeverity.WARNING,
            message=f"Duplicate {ctx.entry_type.value} within {DUPLICATE_WINDOW_SECONDS // 60} minutes",
        )


class MissingOutRule(IssueRule):
    """IN right after IN: the OUT in between was never recorded."""

    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        last = ctx.last_transition
        if ctx.entry_type != EntryType.IN or not last or last.entry_type != EntryType.IN:
            return None
        return ValidationIssue(
            type=IssueType.MISSING_OUT,
            severity=IssueSeverity.ERROR,
            message="IN entry without a preceding OUT",
        )


class MissingInRule(IssueRule):
    """OUT with no IN before it, either OUT after OUT or an OUT as the very first entry."""

    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        if ctx.entry_type != EntryType.OUT:
            return None
        last = ctx.last_transition
        if last is None:
            message = "OUT entry without any earlier IN"
        elif last.entry_type == EntryType.OUT:
            message = "OUT entry without a preceding IN"
        else:
            return None
        return ValidationIssue(type=IssueType.MISSING_IN, severity=IssueSeverity.ERROR, message=message)


class StayDurationRule(IssueRule):
    """Flags IN -> OUT pairs that are implausibly short or long."""

    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        last = ctx.last_transition
        if ctx.entry_type != EntryType.OUT or not last or last.entry_type != EntryType.IN:
            return None

        stay = ctx.timestamp - last.timestamp
        if stay < timedelta(seconds=SHORT_STAY_SECONDS):
            return ValidationIssue(
                type=IssueType.SHORT_DURATION,
                severity=IssueSeverity.WARNING,
                message=f"Stay shorter than {SHORT_STAY_SECONDS // 60} minutes",
            )
        if stay > timedelta(hours=LONG_STAY_HOURS):
            return ValidationIssue(
                type=IssueType.LONG_DURATION,
                severity=IssueSeverity.WARNING,
                message=f"Stay longer than {LONG_STAY_HOURS} hours",
            )
        return None
