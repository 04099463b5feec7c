"""Report API routes — CRUD for reports plus the admin status transition.

Create and update take multipart form fields so media can travel with them.
``location`` and ``retained_media`` are JSON-encoded form fields.
"""

import json
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from app.application.services.report_service import ReportService
from app.core.exceptions import ValidationException
from app.domain.schemas.auth import MessageResponse, TokenClaims
from app.domain.schemas.report import ReportRead
from app.infrastructure.blob_store import MediaFile
from app.interfaces.api.deps import get_current_claims
from app.interfaces.deps import get_report_service

router = APIRouter(prefix="/api/reports", tags=["Reports"])


def _json_field(name: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationException(f"{name} must be valid JSON") from exc


def _read_media(files: Optional[List[UploadFile]]) -> List[MediaFile]:
    return [
        MediaFile(
            filename=f.filename or "file",
            content_type=f.content_type or "application/octet-stream",
            data=f.file.read(),
        )
        for f in files or []
        if f.filename
    ]


def _form_payload(**fields: Optional[str]) -> Dict[str, Any]:
    """Keep only submitted fields; decode the JSON-encoded ones."""
    payload: Dict[str, Any] = {}
    for name, value in fields.items():
        if value is None:
            continue
        payload[name] = _json_field(name, value) if name in ("location", "retained_media") else value
    return payload


@router.get("", response_model=List[ReportRead])
def list_reports(
    status_filter: Optional[str] = Query(None, alias="status"),
    type_filter: Optional[str] = Query(None, alias="type"),
    claims: TokenClaims = Depends(get_current_claims),
    service: ReportService = Depends(get_report_service),
):
    """Admins get every report, users their own."""
    return service.list_reports(claims, {"status": status_filter, "type": type_filter})


@router.post("", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
def create_report(
    type: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    media: Optional[List[UploadFile]] = File(None),
    claims: TokenClaims = Depends(get_current_claims),
    service: ReportService = Depends(get_report_service),
):
    payload = _form_payload(type=type, title=title, description=description, location=location)
    return service.create_report(claims, payload, _read_media(media))


@router.get("/user/{user_id}", response_model=List[ReportRead])
def list_user_reports(
    user_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    service: ReportService = Depends(get_report_service),
):
    return service.list_user_reports(claims, user_id)


@router.get("/{report_id}", response_model=ReportRead)
def get_report(
    report_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    service: ReportService = Depends(get_report_service),
):
    return service.get_report(claims, report_id)


@router.put("/{report_id}", response_model=ReportRead)
def update_report(
    report_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    retained_media: Optional[str] = Form(None),
    media: Optional[List[UploadFile]] = File(None),
    claims: TokenClaims = Depends(get_current_claims),
    service: ReportService = Depends(get_report_service),
):
    payload = _form_payload(
        title=title,
        description=description,
        location=location,
        retained_media=retained_media,
    )
    return service.update_report(claims, report_id, payload, _read_media(media))


@router.delete("/{report_id}", response_model=MessageResponse)
def delete_report(
    report_id: str,
    claims: TokenClaims = Depends(get_current_claims),
    service: ReportService = Depends(get_report_service),
):
    service.delete_report(claims, report_id)
    return MessageResponse(message="Report deleted successfully")


@router.patch("/{report_id}/status", response_model=ReportRead)
def update_report_status(
    report_id: str,
    body: Dict[str, Any],
    claims: TokenClaims = Depends(get_current_claims),
    service: ReportService = Depends(get_report_service),
):
    """Admin only. The body is validated by the service so non-admins get 403 before 400."""
    return service.set_status(claims, report_id, body)
