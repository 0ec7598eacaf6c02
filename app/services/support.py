import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from app.models.report import Report
from app.models.support import Support
from app.schemas import ReportOut
from app.services.reports import hydrate_report, parse_id

logger = logging.getLogger(__name__)


class ReportNotFound(Exception):
    pass


def _lock_report(session: Session, report_id: uuid.UUID):
    # FOR UPDATE is a no-op on SQLite, where writers are already serialized
    return session.exec(
        select(Report).where(Report.id == report_id).with_for_update()
    ).first()


def toggle_support(session: Session, report_id, user_id: uuid.UUID) -> ReportOut:
    """
    Add ``user_id`` to the report's supporters, or remove it when already there.

    Membership change and the recomputed ``support_count`` are written in the
    same transaction, with the report row locked, so the count always equals
    the number of supporter rows.
    """
    parsed = parse_id(report_id)
    report = _lock_report(session, parsed) if parsed else None
    if not report:
        raise ReportNotFound(str(report_id))

    existing = session.exec(
        select(Support)
        .where(Support.report_id == report.id)
        .where(Support.user_id == user_id)
    ).first()

    if existing:
        session.delete(existing)
        action = "removed"
    else:
        session.add(Support(report_id=report.id, user_id=user_id))
        action = "added"

    try:
        session.flush()
    except IntegrityError:
        # another session inserted the same pair first
        session.rollback()
        logger.warning("Concurrent support for report %s by %s", report_id, user_id)
        report = _lock_report(session, parsed)
        if not report:
            raise ReportNotFound(str(report_id))
        action = "kept"

    report.support_count = session.exec(
        select(func.count(Support.id)).where(Support.report_id == report.id)
    ).one()
    report.updated_at = datetime.now(timezone.utc)

    session.add(report)
    session.commit()
    session.refresh(report)

    logger.info("Support %s on report %s by %s (count=%s)", action, report.id, user_id, report.support_count)
    return hydrate_report(session, report)
