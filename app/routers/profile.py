from typing import List, Optional
from fastapi import APIRouter, File, Form, UploadFile
from fastapi.params import Depends
from sqlmodel import Session

from app import config
from app.db.db import get_session
from app.schemas import AuthoredComment, ReportOut, SessionUser
from app.services.contributions import list_authored_comments, list_authored_reports
from app.utils.auth_helper import get_current_user_required, get_db_user, to_session_user
from app.utils.form_validator import validate_profile_form
from app.utils.storage_service import delete_image, read_upload, store_upload


router = APIRouter()


@router.get("/me", response_model=SessionUser)
async def get_my_profile(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    return to_session_user(get_db_user(session, current_user))


@router.patch("/me", response_model=SessionUser)
async def update_my_profile(
    first_name: Optional[str] = Form(None),
    last_name: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)
    form = validate_profile_form(first_name, last_name)

    raw_bytes = await read_upload(avatar)
    new_path = store_upload(raw_bytes, user.id, config.BUCKET_AVATARS)
    old_path = user.avatar_path

    if form.first_name is not None:
        user.first_name = form.first_name
    if form.last_name is not None:
        user.last_name = form.last_name
    if new_path:
        user.avatar_path = new_path

    session.add(user)
    session.commit()
    session.refresh(user)

    # the row no longer points at the old avatar
    if new_path and old_path:
        delete_image(old_path, config.BUCKET_AVATARS)

    return to_session_user(user)


@router.get("/reports", response_model=List[ReportOut])
async def get_my_reports(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)
    return list_authored_reports(session, user.id)


@router.get("/comments", response_model=List[AuthoredComment])
async def get_my_comments(
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)
    return list_authored_comments(session, user.id)
