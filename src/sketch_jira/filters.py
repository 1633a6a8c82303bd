"""
Issue list filters: built-in JQL searches plus the user's favourite filters.
"""

import structlog

from .analytics import Analytics
from .contracts import IssueTrackerProtocol
from .errors import NotFound
from .models import Filter, IssueSummary

__all__ = ["BUILTIN_FILTERS", "Filters"]

logger = structlog.get_logger(__name__)

BUILTIN_FILTERS = [
    Filter(
        key="RecentlyViewed",
        name="Recently viewed",
        jql="issuekey in issueHistory() ORDER BY lastViewed DESC",
    ),
    Filter(
        key="AssignedToMe",
        name="Assigned to me",
        jql="assignee = currentUser() AND resolution = Unresolved ORDER BY updated DESC",
    ),
    Filter(
        key="ReportedByMe",
        name="Reported by me",
        jql="reporter = currentUser() ORDER BY updated DESC",
    ),
    Filter(
        key="AllIssues",
        name="All issues",
        jql="ORDER BY updated DESC",
    ),
]


class Filters:
    """Resolves filter keys to JQL and runs them."""

    def __init__(self, jira: IssueTrackerProtocol, analytics: Analytics | None = None) -> None:
        self.jira = jira
        self.analytics = analytics or Analytics()
        self._filters: dict[str, Filter] = {f.key: f for f in BUILTIN_FILTERS}
        self.current: str = BUILTIN_FILTERS[0].key

    async def load_filters(self) -> list[Filter]:
        favourites = await self.jira.load_filters()
        for f in favourites:
            self._filters[f.key] = f
        return [*BUILTIN_FILTERS, *favourites]

    async def on_filter_changed(self, filter_key: str) -> list[IssueSummary]:
        selected = self._filters.get(filter_key)
        if selected is None:
            raise NotFound(f"Unknown filter: {filter_key}")
        self.current = filter_key
        issues = await self.jira.run_filter(selected.jql)
        logger.info("filter_loaded", filter=filter_key, issues=len(issues))
        self.analytics("viewIssueListFilterChange", {"filter": filter_key, "count": len(issues)})
        return issues
