import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from sqlmodel import Session

from app import config
from app.db.db import get_session
from app.schemas import ReportOut, ReportPage, StatusUpdate
from app.services import reports as report_service
from app.services.support import ReportNotFound, toggle_support
from app.utils.auth_helper import get_current_user_required, get_db_user
from app.utils.form_validator import validate_create_report_form, validate_update_report_form
from app.utils.storage_service import read_upload, store_upload

logger = logging.getLogger(__name__)

router = APIRouter()

REPORT_NOT_FOUND = "Reporte no encontrado"


def _owned_report(session: Session, report_id: str, user, action: str):
    report = report_service.get_report_row(session, report_id)

    if not report:
        raise HTTPException(status_code=404, detail=REPORT_NOT_FOUND)

    # ownership check
    if report.author_id != user.id:
        logger.warning("User %s tried to %s report %s", user.id, action, report_id)
        raise HTTPException(
            status_code=403,
            detail=f"Unauthorized to {action} this report",
        )

    return report


@router.get("", response_model=ReportPage)
async def get_reports(
    page: int = Query(1, ge=1),
    page_size: int = Query(config.REPORTS_PER_PAGE, ge=1, le=config.MAX_PAGE_SIZE),
    keyword: str = "",
    barrio: str = "",
    type: str = "",
    before: Optional[str] = None,
    session: Session = Depends(get_session),
):
    try:
        reports, total, remaining, next_cursor = report_service.list_reports(
            session,
            page=page,
            page_size=page_size,
            keyword=keyword,
            barrio=barrio,
            type=type,
            before=before,
        )
    except report_service.InvalidCursor:
        raise HTTPException(status_code=400, detail="Invalid cursor")

    return ReportPage(
        reports=reports,
        total_count=total,
        page=page,
        page_size=page_size,
        remaining=remaining,
        next_cursor=next_cursor,
    )


@router.post("", response_model=ReportOut, status_code=status.HTTP_201_CREATED)
async def create_report(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    barrio: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    # user lookup
    user = get_db_user(session, current_user)

    form = validate_create_report_form(title, description, type, barrio, location)

    # read image into memory and upload
    raw_bytes = await read_upload(image)
    image_path = store_upload(raw_bytes, user.id, config.BUCKET_REPORT_IMAGES)

    report = report_service.create_report(
        session,
        author_id=user.id,
        fields=form.model_dump(),
        image_paths=[image_path] if image_path else [],
    )

    return report_service.hydrate_report(session, report)


@router.get("/{report_id}", response_model=ReportOut)
async def get_report(report_id: str, session: Session = Depends(get_session)):
    report = report_service.get_report_by_id(session, report_id)

    if not report:
        raise HTTPException(status_code=404, detail=REPORT_NOT_FOUND)

    return report


@router.patch("/{report_id}", response_model=ReportOut)
async def update_report(
    report_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    type: Optional[str] = Form(None),
    barrio: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    remove_images: bool = Form(False),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)
    report = _owned_report(session, report_id, user, "edit")

    form = validate_update_report_form(
        title=title,
        description=description,
        type=type,
        barrio=barrio,
        location=location,
        status=status,
    )

    raw_bytes = await read_upload(image)
    new_path = store_upload(raw_bytes, user.id, config.BUCKET_REPORT_IMAGES)

    old_paths = list(report.image_paths or [])
    image_paths = None
    if new_path:
        image_paths = [new_path]
    elif remove_images:
        image_paths = []

    report = report_service.update_report(
        session,
        report,
        fields=form.model_dump(exclude_none=True),
        image_paths=image_paths,
    )

    # release replaced images only once the row stopped referencing them
    if image_paths is not None:
        report_service.release_report_images(p for p in old_paths if p not in image_paths)

    return report_service.hydrate_report(session, report)


@router.patch("/{report_id}/status", response_model=ReportOut)
async def change_status(
    report_id: str,
    payload: StatusUpdate,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)
    report = _owned_report(session, report_id, user, "change the status of")

    report = report_service.update_report(session, report, fields={"status": payload.status})

    return report_service.hydrate_report(session, report)


@router.delete("/{report_id}")
async def delete_report(
    report_id: str,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)
    report = _owned_report(session, report_id, user, "delete")

    report_service.delete_report(session, report)

    return {"ok": True}


@router.post("/{report_id}/support", response_model=ReportOut)
async def support_report(
    report_id: str,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    try:
        return toggle_support(session, report_id, user.id)
    except ReportNotFound:
        raise HTTPException(status_code=404, detail=REPORT_NOT_FOUND)
