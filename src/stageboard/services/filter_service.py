"""Service for parsing and applying filters to board items."""

import re
from dataclasses import dataclass, field
from datetime import datetime

from ..models import Item
from ..utils import now_utc


@dataclass
class Filter:
    """Represents a parsed filter expression."""

    text: str | None = None  # Free text search
    priorities: list[str] = field(default_factory=list)  # priority:value (severity too)
    assignees: list[str] = field(default_factory=list)  # assignee:value
    exclude_assignees: list[str] = field(default_factory=list)  # -assignee:value
    overdue_only: bool = False  # overdue:true


class FilterService:
    """Service for parsing and applying filters to items."""

    # Pattern for key:value tokens
    TOKEN_PATTERN = re.compile(r"(-?)(?:(priority|assignee|overdue):)?(\S+)")

    def parse(self, expression: str) -> Filter:
        """
        Parse a filter expression string.

        Syntax:
        - Free text: matches title or description
        - priority:value: priority, or severity for incidents
        - assignee:name / -assignee:name: include or exclude by assignee
          (substring match on the display name)
        - overdue:true: only items past their due date

        Multiple conditions are ANDed together.
        """
        f = Filter()
        text_parts: list[str] = []

        for match in self.TOKEN_PATTERN.finditer(expression):
            negated = match.group(1) == "-"
            key = match.group(2)
            value = match.group(3).lower()

            if key is None:
                # Free text (might be negated, but we ignore that for text)
                if not negated:
                    text_parts.append(match.group(3))

            elif key == "priority":
                f.priorities.append(value)

            elif key == "assignee":
                if negated:
                    f.exclude_assignees.append(value)
                else:
                    f.assignees.append(value)

            elif key == "overdue":
                f.overdue_only = value == "true"

        if text_parts:
            f.text = " ".join(text_parts)

        return f

    def apply(self, items: list[Item], filter_: Filter, now: datetime | None = None) -> list[Item]:
        """Apply filter to a list of items, keeping their order."""
        now = now or now_utc()
        return [item for item in items if self._matches(item, filter_, now)]

    def _matches(self, item: Item, f: Filter, now: datetime) -> bool:
        """Check if an item matches the filter."""
        # Text search (case-insensitive)
        if f.text:
            search_text = f.text.lower()
            title = item.display_title.lower()
            description = (item.description or "").lower()
            if search_text not in title and search_text not in description:
                return False

        # Priority filter (any match)
        if f.priorities:
            label = (item.rank_label or "").lower()
            if label not in f.priorities:
                return False

        names = [a.lower() for a in item.assignees]

        # Assignee inclusion (any match)
        if f.assignees and not any(want in name for want in f.assignees for name in names):
            return False

        # Assignee exclusion (no matches)
        if f.exclude_assignees and any(
            unwanted in name for unwanted in f.exclude_assignees for name in names
        ):
            return False

        if f.overdue_only and (item.due_date is None or item.due_date >= now):
            return False

        return True
