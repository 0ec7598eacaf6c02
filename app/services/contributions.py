import uuid
from typing import List

from sqlmodel import Session, col, select

from app.models.comment import Comment
from app.models.report import Report
from app.schemas import AuthoredComment, ReportOut
from app.services.reports import hydrate_comments, hydrate_reports


def list_authored_reports(session: Session, user_id: uuid.UUID) -> List[ReportOut]:
    """All reports written by the user, newest first, with a comment count each."""
    reports = session.exec(
        select(Report)
        .where(Report.author_id == user_id)
        .order_by(col(Report.created_at).desc(), col(Report.id).desc())
    ).all()

    return hydrate_reports(session, list(reports), with_comment_count=True)


def list_authored_comments(session: Session, user_id: uuid.UUID) -> List[AuthoredComment]:
    """All comments written by the user across reports, newest first, with a backlink."""
    rows = session.exec(
        select(Comment, Report.title)
        .join(Report, Report.id == Comment.report_id)
        .where(Comment.author_id == user_id)
        .order_by(col(Comment.created_at).desc(), col(Comment.id).desc())
    ).all()

    comments = hydrate_comments(session, [comment for comment, _ in rows])

    return [
        AuthoredComment(comment=hydrated, report_id=hydrated.report_id, report_title=title)
        for hydrated, (_, title) in zip(comments, rows)
    ]
