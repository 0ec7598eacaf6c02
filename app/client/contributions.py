import logging
from typing import List, Optional

from app.client.gateway import ReportsGateway
from app.client.outcomes import Failure, Unauthorized, is_failure
from app.client.session import SessionContext, SessionEvent
from app.schemas import AuthoredComment, ReportOut

logger = logging.getLogger(__name__)


class ContributionsController:
    """The signed-in user's own reports and comments, with delete actions."""

    def __init__(self, gateway: ReportsGateway, session: SessionContext):
        self.gateway = gateway
        self.session = session
        self.reports: List[ReportOut] = []
        self.comments: List[AuthoredComment] = []
        self.error: Optional[Failure] = None
        self._unsubscribe = session.subscribe(self._on_session_event)

    def close(self) -> None:
        self._unsubscribe()

    def _on_session_event(self, event: SessionEvent, user) -> None:
        # another user's contributions must never stay on screen
        if event in (SessionEvent.SIGNED_OUT, SessionEvent.SIGNED_IN):
            self.reports = []
            self.comments = []

    async def load(self) -> Optional[Failure]:
        if not self.session.is_authenticated:
            self.error = Unauthorized(message="Debes iniciar sesión")
            return self.error

        reports = await self.gateway.my_reports()
        if is_failure(reports):
            self.error = reports
            return reports

        comments = await self.gateway.my_comments()
        if is_failure(comments):
            self.error = comments
            return comments

        self.reports = reports
        self.comments = comments
        self.error = None
        return None

    async def delete_report(self, report_id) -> Optional[Failure]:
        report = next((r for r in self.reports if str(r.id) == str(report_id)), None)
        if not self.session.can_edit(report):
            return Unauthorized(message="Solo el autor puede eliminar este reporte")

        failure = await self.gateway.delete_report(report_id)
        if failure:
            logger.warning("Could not delete report %s: %s", report_id, failure.kind)
            return failure

        self.reports = [r for r in self.reports if str(r.id) != str(report_id)]
        # comments on the deleted report are gone with it
        self.comments = [c for c in self.comments if str(c.report_id) != str(report_id)]
        return None

    async def delete_comment(self, comment_id) -> Optional[Failure]:
        entry = next((c for c in self.comments if str(c.comment.id) == str(comment_id)), None)
        if entry is None or not self.session.owns(entry.comment.user_id):
            return Unauthorized(message="Solo el autor puede eliminar este comentario")

        failure = await self.gateway.delete_comment(entry.report_id, comment_id)
        if failure:
            logger.warning("Could not delete comment %s: %s", comment_id, failure.kind)
            return failure

        self.comments = [c for c in self.comments if str(c.comment.id) != str(comment_id)]
        for report in self.reports:
            if str(report.id) == str(entry.report_id) and report.comment_count:
                report.comment_count -= 1
        return None
