from typing import Optional
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from sqlmodel import Session

from app import config
from app.db.db import get_session
from app.models.comment import Comment
from app.schemas import CommentOut
from app.services import reports as report_service
from app.utils.auth_helper import get_current_user_required, get_db_user
from app.utils.form_validator import validate_comment_form
from app.utils.storage_service import read_upload, store_upload


router = APIRouter()


@router.post("/{report_id}/comments", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    report_id: str,
    content: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    report = report_service.get_report_row(session, report_id)
    if not report:
        raise HTTPException(status_code=404, detail="Reporte no encontrado")

    form = validate_comment_form(content)

    raw_bytes = await read_upload(image)
    image_path = store_upload(raw_bytes, user.id, config.BUCKET_COMMENT_IMAGES)

    comment = report_service.add_comment(session, report, user.id, form.content, image_path)

    return report_service.hydrate_comments(session, [comment])[0]


@router.delete("/{report_id}/comments/{comment_id}")
async def delete_comment(
    report_id: str,
    comment_id: str,
    session: Session = Depends(get_session),
    current_user=Depends(get_current_user_required),
):
    user = get_db_user(session, current_user)

    comment_uuid = report_service.parse_id(comment_id)
    comment = session.get(Comment, comment_uuid) if comment_uuid else None

    if not comment or str(comment.report_id) != str(report_service.parse_id(report_id)):
        raise HTTPException(status_code=404, detail="Comment not found")

    # ownership check
    if comment.author_id != user.id:
        raise HTTPException(status_code=403, detail="Unauthorized to delete this comment")

    report_service.delete_comment(session, comment)

    return {"ok": True}
