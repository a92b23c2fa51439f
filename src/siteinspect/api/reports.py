"""
Report CRUD endpoints.

One router per report type, all built by ``build_report_router``. Writes take
a multipart form: scalar fields as text, the nested sub-object (hazardous
materials, boundary details) as a JSON string, and an optional ``document``
file.
"""

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import Response
from starlette.datastructures import UploadFile

from siteinspect.core import storage
from siteinspect.core.errors import ValidationError
from siteinspect.core.evaluation import evaluate
from siteinspect.core.logging_config import LogContext, add_log_context
from siteinspect.core.report_store import get_report_store
from siteinspect.core.reports import ReportTableExporter, export_filename
from siteinspect.core.search import search_reports
from siteinspect.models.errors import ErrorResponse, MessageResponse
from siteinspect.models.evaluation import Evaluation
from siteinspect.models.reports import REPORT_SCHEMAS, ReportEnvelope, ReportKind, ReportSchema

logger = logging.getLogger(__name__)

DOCUMENT_FIELD = "document"

NOT_FOUND_RESPONSE = {404: {"model": ErrorResponse, "description": "Report not found"}}
WRITE_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid report fields or nested JSON"},
    500: {"model": ErrorResponse, "description": "Persistence failure"},
}


def parse_nested_field(name: str, raw: Any) -> Dict[str, Any]:
    """
    Decode a JSON-encoded sub-object sent as a form field.

    Raises:
        ValidationError: If the value is not valid JSON or not a JSON object
    """
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            f"Invalid JSON in {name}",
            field=name,
            details={"value": str(raw)[:200]},
            suggestions=[f"Send {name} as a JSON object string"],
        ) from e
    if not isinstance(value, dict):
        raise ValidationError(
            f"{name} must be a JSON object",
            field=name,
            details={"type": type(value).__name__},
        )
    return value


async def parse_report_form(
    request: Request, schema: ReportSchema
) -> Tuple[Dict[str, Any], Optional[UploadFile]]:
    """
    Split a multipart request into report fields and the uploaded document.

    Returns:
        Tuple of (fields keyed by wire name, uploaded file or None)
    """
    form = await request.form()

    fields: Dict[str, Any] = {}
    upload: Optional[UploadFile] = None
    for key, value in form.multi_items():
        if isinstance(value, UploadFile):
            # Browsers send an empty, unnamed part when no file was chosen
            if key == DOCUMENT_FIELD and value.filename:
                upload = value
            continue
        if key == DOCUMENT_FIELD:
            continue
        fields[key] = value

    if schema.nested_field and schema.nested_field in fields:
        fields[schema.nested_field] = parse_nested_field(
            schema.nested_field, fields[schema.nested_field]
        )

    return fields, upload


async def store_upload(upload: Optional[UploadFile]) -> Optional[str]:
    """Persist an uploaded document and return its relative path."""
    if upload is None:
        return None
    content = await upload.read()
    return await storage.storage_service.save_document(content, upload.filename or "")


def build_report_router(kind: ReportKind) -> APIRouter:
    """
    Build the CRUD router for one report type.

    Args:
        kind: Report type served by the router

    Returns:
        Router exposing ``/{kind}-report`` and ``/{kind}-reports`` paths
    """
    schema = REPORT_SCHEMAS[kind]
    record_model = schema.record_model
    single = f"/{kind.value}-report"
    plural = f"/{kind.value}-reports"

    router = APIRouter(tags=[f"{kind.value} reports"])

    def report_log_context(report_id: Optional[str] = None) -> LogContext:
        if report_id is None:
            return add_log_context(collection=schema.collection)
        return add_log_context(collection=schema.collection, report_id=report_id)

    @router.post(
        single,
        response_model=ReportEnvelope[record_model],
        status_code=status.HTTP_201_CREATED,
        responses=WRITE_RESPONSES,
        summary=f"Create a {kind.value} report",
    )
    async def create_report(request: Request) -> Dict[str, Any]:
        fields, upload = await parse_report_form(request, schema)
        store = get_report_store(kind)
        with report_log_context():
            # Reject invalid fields before anything is written to the upload directory
            store.validate_fields(fields)
            document = await store_upload(upload)
            report = store.create(fields, document)
        return {"message": f"{kind.label} report saved successfully", "report": report}

    @router.get(
        plural,
        response_model=List[record_model],
        summary=f"List {kind.value} reports",
    )
    async def list_reports(
        q: Optional[str] = Query(None, description="Free-text or field-specific search"),
    ) -> List[Any]:
        reports = get_report_store(kind).list()
        if q:
            reports = search_reports(kind, reports, q)
        return reports

    @router.get(
        f"{plural}/export",
        response_class=Response,
        responses={200: {"content": {"application/pdf": {}}}},
        summary=f"Export {kind.value} reports as PDF",
    )
    async def export_reports(
        q: Optional[str] = Query(None, description="Only export reports matching this search"),
    ) -> Response:
        with report_log_context():
            reports = get_report_store(kind).list()
            if q:
                reports = search_reports(kind, reports, q)
            pdf = ReportTableExporter().render(kind, reports)
            logger.info(f"Exported {len(reports)} {kind.value} report(s) to PDF")
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{export_filename(kind)}"'},
        )

    @router.get(
        f"{single}/{{report_id}}",
        response_model=record_model,
        responses=NOT_FOUND_RESPONSE,
        summary=f"Get a {kind.value} report",
    )
    async def get_report(report_id: str) -> Any:
        with report_log_context(report_id):
            return get_report_store(kind).get_by_id(report_id)

    @router.get(
        f"{single}/{{report_id}}/evaluation",
        response_model=Evaluation,
        responses=NOT_FOUND_RESPONSE,
        summary=f"Summarize a {kind.value} report",
    )
    async def evaluate_report(report_id: str) -> Evaluation:
        with report_log_context(report_id):
            return evaluate(get_report_store(kind).get_by_id(report_id))

    @router.put(
        f"{single}/{{report_id}}",
        response_model=ReportEnvelope[record_model],
        responses={**NOT_FOUND_RESPONSE, **WRITE_RESPONSES},
        summary=f"Update a {kind.value} report",
    )
    async def update_report(report_id: str, request: Request) -> Dict[str, Any]:
        store = get_report_store(kind)
        fields, upload = await parse_report_form(request, schema)
        with report_log_context(report_id):
            # Missing reports and invalid merged fields are rejected before the upload is stored
            store.validate_update(report_id, fields)
            document = await store_upload(upload)
            report = store.update_by_id(report_id, fields, document)
        return {"message": "Report updated successfully", "report": report}

    @router.delete(
        f"{single}/{{report_id}}",
        response_model=MessageResponse,
        responses=NOT_FOUND_RESPONSE,
        summary=f"Delete a {kind.value} report",
    )
    async def delete_report(report_id: str) -> MessageResponse:
        with report_log_context(report_id):
            get_report_store(kind).delete_by_id(report_id)
        return MessageResponse(message="Report deleted successfully")

    return router


routers = [build_report_router(kind) for kind in ReportKind]
