from __future__ import annotations

from typing import Optional

from ...core.constants import EXCESSIVE_ENTRIES_PER_DAY, UNUSUAL_HOUR_END, UNUSUAL_HOUR_START
from ...core.enums import IssueSeverity, IssueType
from ..model import ValidationIssue
from .base import IssueRule, RuleContext


class ExcessiveEntriesRule(IssueRule):
    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        if len(ctx.same_day) < EXCESSIVE_ENTRIES_PER_DAY:
            return None
        return ValidationIssue(
            type=IssueType.EXCESSIVE_ENTRIES,
            severity=IssueSeverity.WARNING,
            message=f"{len(ctx.same_day) + 1} entries on the same day",
        )


class UnusualTimeRule(IssueRule):
    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        hour = ctx.timestamp.hour
        if UNUSUAL_HOUR_END <= hour < UNUSUAL_HOUR_START:
            return None
        return ValidationIssue(
            type=IssueType.UNUSUAL_TIME,
            severity=IssueSeverity.INFO,
            message=f"Entry at unusual time {ctx.timestamp.strftime('%H:%M')}",
        )


class WeekendEntryRule(IssueRule):
    def check(self, ctx: RuleContext) -> Optional[ValidationIssue]:
        # Sunday
        if ctx.timestamp.weekday() != 6:
            return None
        return ValidationIssue(
            type=IssueType.WEEKEND_ENTRY,
            severity=IssueSeverity.INFO,
            message="Entry recorded on a Sunday",
        )
