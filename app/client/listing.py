"""
Paginated report listing with incremental "load more".

The controller keeps the filter state, the page cursor and the accumulated
results. "Load more" continues from the last loaded report (keyset cursor),
so reports created or deleted by others in the meantime neither repeat nor
skip entries; new reports show up on the next `load()`. Each request is tagged with a sequence number. A response is applied
only while its request is still the latest one, so a "load more" answer that
lands after the filters changed is dropped.
"""

import enum
import logging
from typing import List, Optional

from app import config
from app.client.gateway import FilterState, ReportsGateway
from app.client.outcomes import Failure, is_failure
from app.schemas import ReportOut

logger = logging.getLogger(__name__)


class ListingState(str, enum.Enum):
    IDLE = "idle"
    LOADING_INITIAL = "loading_initial"
    LOADING_MORE = "loading_more"
    LOADED = "loaded"
    ERROR = "error"


def matches_filters(report: ReportOut, filters: FilterState) -> bool:
    keyword = filters.keyword.strip().lower()
    if keyword and keyword not in report.title.lower() and keyword not in report.description.lower():
        return False
    if filters.barrio and report.barrio != filters.barrio:
        return False
    if filters.type and report.type != filters.type:
        return False
    return True


class ReportListingController:
    def __init__(self, gateway: ReportsGateway, page_size: int = config.REPORTS_PER_PAGE):
        self.gateway = gateway
        self.page_size = page_size

        self.state = ListingState.IDLE
        self.filters = FilterState()
        self.results: List[ReportOut] = []
        self.page = 0  # last page applied to results
        self.cursor: Optional[str] = None
        self.total_count = 0
        self.has_more = False
        self.error: Optional[Failure] = None

        self._seq = 0
        self._last_request: Optional[tuple] = None  # (filters, page, before) for retry

    async def load(self) -> None:
        """First load, or reload from page 1 with the current filters."""
        self.results = []
        self.page = 0
        self.cursor = None
        self.total_count = 0
        self.has_more = False
        await self._fetch(self.filters, 1)

    async def set_filters(
        self,
        keyword: Optional[str] = None,
        barrio: Optional[str] = None,
        type: Optional[str] = None,
    ) -> None:
        updates = {k: v for k, v in (("keyword", keyword), ("barrio", barrio), ("type", type)) if v is not None}
        new_filters = self.filters.model_copy(update=updates)

        if new_filters == self.filters and self.state != ListingState.IDLE:
            return

        self.filters = new_filters
        await self.load()

    async def load_more(self) -> None:
        if self.state != ListingState.LOADED or not self.has_more:
            return
        await self._fetch(self.filters, self.page + 1, before=self.cursor)

    async def retry(self) -> None:
        if self.state != ListingState.ERROR or not self._last_request:
            return
        filters, page, before = self._last_request
        await self._fetch(filters, page, before)

    def visible(self) -> List[ReportOut]:
        return [report for report in self.results if matches_filters(report, self.filters)]

    def replace(self, report: ReportOut) -> None:
        """Swap in a fresher copy of an already listed report (e.g. after a support toggle)."""
        self.results = [report if r.id == report.id else r for r in self.results]

    def remove(self, report_id) -> None:
        before = len(self.results)
        self.results = [r for r in self.results if str(r.id) != str(report_id)]
        removed = before - len(self.results)
        self.total_count = max(0, self.total_count - removed)
        self.has_more = len(self.results) < self.total_count

    async def _fetch(self, filters: FilterState, page: int, before: Optional[str] = None) -> None:
        append = page > 1
        self._seq += 1
        seq = self._seq
        self._last_request = (filters, page, before)
        self.state = ListingState.LOADING_MORE if append else ListingState.LOADING_INITIAL
        self.error = None

        result = await self.gateway.list_reports(
            page=page, page_size=self.page_size, filters=filters, before=before
        )

        if seq != self._seq or filters != self.filters:
            logger.debug("Discarding stale listing response for page %s", page)
            return

        if is_failure(result):
            # keep what was already visible
            self.state = ListingState.ERROR
            self.error = result
            return

        if append:
            known = {r.id for r in self.results}
            self.results = self.results + [r for r in result.reports if r.id not in known]
        else:
            self.results = list(result.reports)

        self.page = page
        self.cursor = result.next_cursor
        # what this listing can still reach, not the live match count
        self.total_count = len(self.results) + result.remaining
        self.has_more = len(self.results) < self.total_count
        self.state = ListingState.LOADED
