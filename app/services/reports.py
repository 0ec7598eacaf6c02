"""
Report reads and writes shared by the report, comment and profile routers.

Reads return hydrated ``ReportOut``/``CommentOut`` objects: author names and
avatars are resolved from the current profile rows at read time, and storage
paths are turned into public URLs.
"""

import logging
import uuid
from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from sqlmodel import Session, and_, col, func, or_, select

from app import config
from app.models.comment import Comment
from app.models.report import Report
from app.models.support import Support
from app.models.user import User
from app.schemas import CommentOut, ReportOut
from app.utils.auth_helper import avatar_url, display_name
from app.utils.storage_service import delete_image, public_url

logger = logging.getLogger(__name__)


def _load_authors(session: Session, user_ids: Iterable[uuid.UUID]) -> Dict[uuid.UUID, User]:
    ids = set(user_ids)
    if not ids:
        return {}
    users = session.exec(select(User).where(col(User.id).in_(ids))).all()
    return {u.id: u for u in users}


def _author_fields(authors: Dict[uuid.UUID, User], user_id: uuid.UUID) -> Tuple[str, str]:
    user = authors.get(user_id)
    if not user:
        placeholder = User(id=user_id, email="", hashed_password="")
        return "Usuario Anónimo", avatar_url(placeholder)
    return display_name(user), avatar_url(user)


def _image_urls(paths: List[str]) -> List[str]:
    urls = [public_url(config.BUCKET_REPORT_IMAGES, path) for path in paths or []]
    return [url for url in urls if url]


def hydrate_comments(session: Session, comments: List[Comment]) -> List[CommentOut]:
    authors = _load_authors(session, (c.author_id for c in comments))

    hydrated = []
    for comment in comments:
        name, avatar = _author_fields(authors, comment.author_id)
        hydrated.append(
            CommentOut(
                id=comment.id,
                report_id=comment.report_id,
                user_id=comment.author_id,
                user_name=name,
                user_avatar=avatar,
                content=comment.content,
                image_url=(
                    public_url(config.BUCKET_COMMENT_IMAGES, comment.image_path)
                    if comment.image_path
                    else None
                ),
                created_at=comment.created_at,
            )
        )
    return hydrated


def hydrate_reports(
    session: Session,
    reports: List[Report],
    with_comments: bool = False,
    with_comment_count: bool = False,
) -> List[ReportOut]:
    if not reports:
        return []

    report_ids = [r.id for r in reports]
    authors = _load_authors(session, (r.author_id for r in reports))

    supporters: Dict[uuid.UUID, List[uuid.UUID]] = defaultdict(list)
    for report_id, user_id in session.exec(
        select(Support.report_id, Support.user_id)
        .where(col(Support.report_id).in_(report_ids))
        .order_by(Support.created_at)
    ).all():
        supporters[report_id].append(user_id)

    threads: Dict[uuid.UUID, List[CommentOut]] = defaultdict(list)
    if with_comments:
        comments = session.exec(
            select(Comment)
            .where(col(Comment.report_id).in_(report_ids))
            .order_by(Comment.created_at, Comment.id)
        ).all()
        for comment in hydrate_comments(session, list(comments)):
            threads[comment.report_id].append(comment)

    counts: Dict[uuid.UUID, int] = {}
    if with_comment_count:
        counts = dict(
            session.exec(
                select(Comment.report_id, func.count(Comment.id))
                .where(col(Comment.report_id).in_(report_ids))
                .group_by(Comment.report_id)
            ).all()
        )

    hydrated = []
    for report in reports:
        name, avatar = _author_fields(authors, report.author_id)
        hydrated.append(
            ReportOut(
                id=report.id,
                title=report.title,
                description=report.description,
                type=report.type,
                barrio=report.barrio,
                status=report.status,
                location=report.location or "",
                created_at=report.created_at,
                updated_at=report.updated_at,
                author_id=report.author_id,
                author_name=name,
                author_avatar=avatar,
                images=_image_urls(report.image_paths),
                comments=threads.get(report.id, []),
                comment_count=counts.get(report.id, 0) if with_comment_count else None,
                support_count=report.support_count,
                supported_by=supporters.get(report.id, []),
            )
        )
    return hydrated


def hydrate_report(session: Session, report: Report, with_comments: bool = True) -> ReportOut:
    return hydrate_reports(session, [report], with_comments=with_comments)[0]


def parse_id(value) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


def get_report_row(session: Session, report_id) -> Optional[Report]:
    parsed = parse_id(report_id)
    if parsed is None:
        return None
    return session.get(Report, parsed)


def get_report_by_id(session: Session, report_id) -> Optional[ReportOut]:
    """Return the report with its author and ascending comment thread, or None."""
    report = get_report_row(session, report_id)
    if not report:
        return None
    return hydrate_report(session, report, with_comments=True)


def _filtered(query, keyword: str = "", barrio: str = "", type: str = ""):
    keyword = (keyword or "").strip()
    if keyword:
        query = query.where(
            or_(
                col(Report.title).icontains(keyword, autoescape=True),
                col(Report.description).icontains(keyword, autoescape=True),
            )
        )
    if barrio:
        query = query.where(Report.barrio == barrio)
    if type:
        query = query.where(Report.type == type)
    return query


class InvalidCursor(ValueError):
    pass


def encode_cursor(report: Report) -> str:
    return f"{report.created_at.isoformat()}|{report.id.hex}"


def decode_cursor(cursor: str) -> Tuple[datetime, uuid.UUID]:
    try:
        created_at, report_id = cursor.rsplit("|", 1)
        return datetime.fromisoformat(created_at), uuid.UUID(report_id)
    except ValueError as e:
        raise InvalidCursor(cursor) from e


def _older_than(created_at: datetime, report_id: uuid.UUID):
    # same (created_at desc, id desc) order the listing uses
    return or_(
        col(Report.created_at) < created_at,
        and_(col(Report.created_at) == created_at, col(Report.id) < report_id),
    )


def list_reports(
    session: Session,
    page: int = 1,
    page_size: int = config.REPORTS_PER_PAGE,
    keyword: str = "",
    barrio: str = "",
    type: str = "",
    before: Optional[str] = None,
) -> Tuple[List[ReportOut], int, int, Optional[str]]:
    """
    One page of matching reports, newest first.

    With ``before`` the page starts right after that cursor, so rows inserted
    or deleted between requests do not shift it; otherwise ``page`` selects an
    offset page. Returns ``(reports, total, remaining, next_cursor)`` where
    ``remaining`` counts the matching reports older than the last one returned.
    """
    total = session.exec(
        _filtered(select(func.count(Report.id)), keyword, barrio, type)
    ).one()

    query = _filtered(select(Report), keyword, barrio, type)
    if before:
        query = query.where(_older_than(*decode_cursor(before)))
    else:
        query = query.offset((page - 1) * page_size)

    reports = session.exec(
        query.order_by(col(Report.created_at).desc(), col(Report.id).desc()).limit(page_size)
    ).all()

    remaining = 0
    next_cursor = None
    if reports:
        last = reports[-1]
        remaining = session.exec(
            _filtered(select(func.count(Report.id)), keyword, barrio, type)
            .where(_older_than(last.created_at, last.id))
        ).one()
        if remaining:
            next_cursor = encode_cursor(last)

    return hydrate_reports(session, list(reports)), total, remaining, next_cursor


def create_report(session: Session, author_id: uuid.UUID, fields: dict, image_paths: List[str]) -> Report:
    report = Report(
        author_id=author_id,
        status="Abierto",
        image_paths=list(image_paths),
        support_count=0,
        **fields,
    )

    session.add(report)
    session.commit()
    session.refresh(report)

    logger.info("Report %s created by %s", report.id, author_id)
    return report


def update_report(session: Session, report: Report, fields: dict, image_paths: Optional[List[str]] = None) -> Report:
    for field, value in fields.items():
        setattr(report, field, value)

    if image_paths is not None:
        # reassign so the JSON column is flagged dirty
        report.image_paths = list(image_paths)

    report.updated_at = datetime.now(timezone.utc)

    session.add(report)
    session.commit()
    session.refresh(report)
    return report


def release_report_images(paths: Iterable[str]) -> None:
    for path in paths:
        delete_image(path, config.BUCKET_REPORT_IMAGES)


def delete_report(session: Session, report: Report) -> None:
    """Release every stored image of the report and its comments, then delete the rows."""
    comments = session.exec(select(Comment).where(Comment.report_id == report.id)).all()

    release_report_images(report.image_paths or [])
    for comment in comments:
        if comment.image_path:
            delete_image(comment.image_path, config.BUCKET_COMMENT_IMAGES)

    supports = session.exec(select(Support).where(Support.report_id == report.id)).all()
    for row in [*comments, *supports]:
        session.delete(row)
    session.flush()
    session.delete(report)
    session.commit()

    logger.info("Report %s deleted", report.id)


def add_comment(
    session: Session, report: Report, author_id: uuid.UUID, content: str, image_path: Optional[str]
) -> Comment:
    comment = Comment(
        report_id=report.id,
        author_id=author_id,
        content=content,
        image_path=image_path,
    )

    session.add(comment)
    session.commit()
    session.refresh(comment)
    return comment


def delete_comment(session: Session, comment: Comment) -> None:
    if comment.image_path:
        delete_image(comment.image_path, config.BUCKET_COMMENT_IMAGES)

    session.delete(comment)
    session.commit()
