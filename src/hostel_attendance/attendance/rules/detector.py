from __future__ import annotations

from typing import List, Optional, Sequence

from ..model import ValidationIssue
from .activity_rules import ExcessiveEntriesRule, UnusualTimeRule, WeekendEntryRule
from .base import IssueRule, RuleContext
from .sequence_rules import DuplicateEntryRule, MissingInRule, MissingOutRule, StayDurationRule


def default_rules() -> List[IssueRule]:
    return [
        DuplicateEntryRule(),
        MissingOutRule(),
        MissingInRule(),
        StayDurationRule(),
        ExcessiveEntriesRule(),
        UnusualTimeRule(),
        WeekendEntryRule(),
    ]


class IssueDetector:
    def __init__(self, rules: Optional[Sequence[IssueRule]] = None):
        self._rules = list(rules) if rules is not None else default_rules()

    def detect(self, ctx: RuleContext) -> tuple[ValidationIssue, ...]:
        issues = []
        for rule in self._rules:
            issue = rule.check(ctx)
            if issue:
                issues.append(issue)
        return tuple(issues)
