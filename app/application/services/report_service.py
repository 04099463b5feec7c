"""Report service — the report lifecycle and who may do what to a report.

Reports start as ``draft``. While a report is a draft its owner may edit or
delete it; once an admin moves it to any other status its content is frozen
for everyone, admins included, and only the status can still change.

Every operation re-reads the acting user so that a role change takes effect
immediately rather than when the bearer token is next issued.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Sequence, Union

import structlog

from app.application.services.notification_service import Notifier
from app.config import get_settings
from app.core.exceptions import (
    EntityNotFoundException,
    ForbiddenException,
    InvalidStateException,
    InvalidTokenException,
    ValidationException,
)
from app.core.validation import parse_model
from app.domain.models.report import Report, STATUS_DRAFT
from app.domain.models.user import User
from app.domain.repositories.report_repository import ReportRepository
from app.domain.repositories.user_repository import UserRepository
from app.domain.schemas.auth import TokenClaims
from app.domain.schemas.report import ReportCreate, ReportFilter, ReportRead, ReportUpdate, StatusUpdate
from app.infrastructure.blob_store import BlobStore, MediaFile, validate_media

settings = get_settings()
logger = structlog.get_logger(__name__)

Payload = Mapping[str, Any]


class ReportService:
    def __init__(
        self,
        reports: ReportRepository,
        users: UserRepository,
        notifier: Notifier,
        blob_store: BlobStore,
        max_files: int = settings.MAX_FILES_PER_REQUEST,
        max_upload_bytes: int = settings.MAX_UPLOAD_BYTES,
    ):
        self.reports = reports
        self.users = users
        self.notifier = notifier
        self.blob_store = blob_store
        self.max_files = max_files
        self.max_upload_bytes = max_upload_bytes

    # ---- helpers ---------------------------------------------------------

    def _actor(self, claims: TokenClaims) -> User:
        user = self.users.get_by_id(claims.user_id)
        if user is None:
            raise InvalidTokenException("Account no longer exists")
        return user

    def _get_report(self, report_id: str) -> Report:
        report = self.reports.get_by_id(report_id)
        if report is None:
            raise EntityNotFoundException("Report not found", details={"id": report_id})
        return report

    def _check_owner_draft(self, actor: User, report: Report) -> None:
        if report.user_id != actor.id:
            raise ForbiddenException("Access denied")
        if not report.is_draft:
            raise InvalidStateException(
                f"Cannot modify a report with status '{report.status}'",
                details={"status": report.status},
            )

    @contextmanager
    def _stored_media(self, media: Sequence[MediaFile]) -> Iterator[List[str]]:
        """Store validated media; remove the blobs again if the report write fails."""
        files = validate_media(media, self.max_files, self.max_upload_bytes)
        references: List[str] = []
        try:
            for f in files:
                references.append(self.blob_store.store(f))
            yield references
        except Exception:
            for reference in references:
                self.blob_store.delete(reference)
            if references:
                logger.info("Orphaned media removed", count=len(references))
            raise

    # ---- operations ------------------------------------------------------

    def create_report(
        self,
        claims: TokenClaims,
        data: Union[ReportCreate, Payload],
        media: Sequence[MediaFile] = (),
    ) -> ReportRead:
        actor = self._actor(claims)
        body = parse_model(ReportCreate, data)
        with self._stored_media(media) as references:
            report = self.reports.create({
                "user_id": actor.id,
                "type": body.type,
                "title": body.title,
                "description": body.description,
                "latitude": body.location.lat if body.location else None,
                "longitude": body.location.lng if body.location else None,
                "media": references,
                "status": STATUS_DRAFT,
            })

        logger.info("Report created", report_id=report.id, user_id=actor.id, type=report.type, media=len(references))
        return ReportRead.model_validate(report)

    def get_report(self, claims: TokenClaims, report_id: str) -> ReportRead:
        actor = self._actor(claims)
        report = self._get_report(report_id)
        if not actor.is_admin and report.user_id != actor.id:
            raise ForbiddenException("Access denied")
        return ReportRead.model_validate(report)

    def list_reports(
        self,
        claims: TokenClaims,
        filters: Union[ReportFilter, Payload, None] = None,
    ) -> List[ReportRead]:
        """Admins see every report; everyone else sees their own."""
        actor = self._actor(claims)
        filters = parse_model(ReportFilter, filters or {})
        owner_id = None if actor.is_admin else actor.id
        return [ReportRead.model_validate(r) for r in self.reports.list_reports(filters, user_id=owner_id)]

    def list_user_reports(
        self,
        claims: TokenClaims,
        user_id: str,
        filters: Union[ReportFilter, Payload, None] = None,
    ) -> List[ReportRead]:
        actor = self._actor(claims)
        if not actor.is_admin and actor.id != user_id:
            raise ForbiddenException("Access denied")
        filters = parse_model(ReportFilter, filters or {})
        return [ReportRead.model_validate(r) for r in self.reports.list_reports(filters, user_id=user_id)]

    def update_report(
        self,
        claims: TokenClaims,
        report_id: str,
        data: Union[ReportUpdate, Payload],
        media: Sequence[MediaFile] = (),
    ) -> ReportRead:
        """Edit a draft. New media is appended; ``retained_media`` narrows what is kept."""
        actor = self._actor(claims)
        report = self._get_report(report_id)
        self._check_owner_draft(actor, report)

        body = parse_model(ReportUpdate, data)
        values: Dict[str, Any] = {}
        if body.title is not None:
            values["title"] = body.title
        if body.description is not None:
            values["description"] = body.description
        if "location" in body.model_fields_set:
            values["latitude"] = body.location.lat if body.location else None
            values["longitude"] = body.location.lng if body.location else None

        existing = list(report.media or [])
        kept = existing
        if body.retained_media is not None:
            unknown = [ref for ref in body.retained_media if ref not in existing]
            if unknown:
                raise ValidationException("Retained media must belong to the report", details={"unknown": unknown})
            retained = set(body.retained_media)
            kept = [ref for ref in existing if ref in retained]

        with self._stored_media(media) as references:
            if references or kept != existing:
                values["media"] = kept + references

            updated = self.reports.update_if_draft(report.id, actor.id, values)
            if updated is None:
                # Status changed between the read and the write
                raise InvalidStateException("Cannot modify a report that is no longer a draft")

        logger.info("Report updated", report_id=report.id, fields=sorted(values))
        return ReportRead.model_validate(updated)

    def delete_report(self, claims: TokenClaims, report_id: str) -> None:
        actor = self._actor(claims)
        report = self._get_report(report_id)
        self._check_owner_draft(actor, report)

        if not self.reports.delete_if_draft(report.id, actor.id):
            if self.reports.get_by_id(report.id) is None:
                raise EntityNotFoundException("Report not found", details={"id": report_id})
            raise InvalidStateException("Cannot delete a report that is no longer a draft")

        logger.info("Report deleted", report_id=report_id, user_id=actor.id)

    def set_status(
        self,
        claims: TokenClaims,
        report_id: str,
        data: Union[StatusUpdate, Payload],
    ) -> ReportRead:
        """Admin-only. Any post-draft status may follow any other."""
        actor = self._actor(claims)
        if not actor.is_admin:
            raise ForbiddenException("Admin access required")

        body = parse_model(StatusUpdate, data)
        report = self._get_report(report_id)
        old_status = report.status

        if not self.reports.set_status(report.id, body.status):
            raise EntityNotFoundException("Report not found", details={"id": report_id})
        report = self._get_report(report_id)

        logger.info(
            "Report status changed",
            report_id=report.id,
            admin_id=actor.id,
            old_status=old_status,
            new_status=report.status,
        )

        if old_status != report.status:
            self._notify_owner(report, old_status)
        return ReportRead.model_validate(report)

    def _notify_owner(self, report: Report, old_status: str) -> None:
        owner = self.users.get_by_id(report.user_id)
        if owner is None:
            return
        delivered = self.notifier.send_status_change(
            owner.email,
            owner.display_name,
            report.title,
            old_status,
            report.status,
        )
        if not delivered:
            logger.warning("Status change notice not delivered", report_id=report.id, email=owner.email)
