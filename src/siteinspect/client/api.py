"""
Async HTTP client for the report API.

Writes are sent as multipart forms: scalar values as text, the nested
sub-object as a JSON string and the document as a file part. Error bodies
are mapped back onto the exception hierarchy.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import httpx
from pydantic import BaseModel, Field

from siteinspect.core.config import settings
from siteinspect.core.errors import APIError, NotFoundError, ValidationError
from siteinspect.models.reports import REPORT_SCHEMAS, ReportKind
from siteinspect.utils.formatting import format_value

logger = logging.getLogger(__name__)

# A path on disk, or an explicit (filename, content) pair
DocumentInput = Union[Path, Tuple[str, bytes]]


class ReportsClientConfig(BaseModel):
    """Configuration for the report API client."""

    base_url: str = Field(default="http://localhost:8002", description="API server URL")
    api_prefix: str = Field(default="/api", description="Path prefix of the report routes")
    timeout: float = Field(default=30.0, description="Request timeout in seconds", ge=1.0)

    @classmethod
    def from_settings(cls) -> "ReportsClientConfig":
        return cls(base_url=settings.base_url, api_prefix=settings.api_prefix)


def encode_form_fields(kind: ReportKind, fields: Mapping[str, Any]) -> Dict[str, str]:
    """
    Render report values as multipart text fields.

    Example:
        >>> encode_form_fields(ReportKind.SURVEYOR, {"landArea": 1000.0,
        ...     "boundaryDetails": {"clearlyMarked": True, "disputed": False}})
        {'landArea': '1000', 'boundaryDetails': '{"clearlyMarked": true, "disputed": false}'}
    """
    nested = REPORT_SCHEMAS[kind].nested_field
    data: Dict[str, str] = {}
    for key, value in fields.items():
        if value is None:
            continue
        if key == nested:
            data[key] = json.dumps(value)
        else:
            data[key] = format_value(value)
    return data


def _document_part(document: DocumentInput) -> Tuple[str, bytes]:
    if isinstance(document, Path):
        return document.name, document.read_bytes()
    return document


class ReportsClient:
    """
    Client for the report CRUD endpoints.

    Returned records are instances of the report type's record model
    (``SoilReport``, ``EnvironmentalReport``, ``SurveyorReport``).
    """

    def __init__(
        self,
        config: Optional[ReportsClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize the API client.

        Args:
            config: Client configuration (defaults to application settings)
            transport: Optional httpx transport, e.g. an ASGI transport for
                calling the app in-process
        """
        self.config = config or ReportsClientConfig.from_settings()
        self.client = httpx.AsyncClient(
            base_url=self.config.base_url,
            timeout=httpx.Timeout(self.config.timeout),
            transport=transport,
        )

    async def __aenter__(self) -> "ReportsClient":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    def _path(self, kind: ReportKind, suffix: str = "", plural: bool = False) -> str:
        noun = "reports" if plural else "report"
        return f"{self.config.api_prefix}/{kind.value}-{noun}{suffix}"

    @staticmethod
    def _raise_for_error(response: httpx.Response, report_id: Optional[str] = None) -> None:
        """Map an error response onto the exception hierarchy."""
        if response.is_success:
            return

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or response.reason_phrase or "Request failed"
        details = body.get("details") or {}

        logger.warning(
            f"API error {response.status_code} for {response.request.method} "
            f"{response.request.url.path}: {message}"
        )

        if response.status_code == 404:
            raise NotFoundError(message, report_id=report_id, details=details)
        if response.status_code == 400:
            raise ValidationError(message, field=details.get("field"), details=details)
        raise APIError(
            message,
            error_code=body.get("error_code", "API_ERROR"),
            status_code=response.status_code,
            details=details,
        )

    async def _request(
        self,
        method: str,
        path: str,
        report_id: Optional[str] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {type(e).__name__}")
            raise APIError(
                "Report API is unreachable",
                error_code="API_UNREACHABLE",
                status_code=503,
                details={"error_type": type(e).__name__},
            ) from e
        self._raise_for_error(response, report_id)
        return response

    def _record(self, kind: ReportKind, data: Dict[str, Any]) -> BaseModel:
        return REPORT_SCHEMAS[kind].record_model.model_validate(data)

    async def _write(
        self,
        method: str,
        kind: ReportKind,
        path: str,
        fields: Mapping[str, Any],
        document: Optional[DocumentInput],
        report_id: Optional[str] = None,
    ) -> BaseModel:
        files = {"document": _document_part(document)} if document is not None else None
        response = await self._request(
            method,
            path,
            report_id=report_id,
            data=encode_form_fields(kind, fields),
            files=files,
        )
        return self._record(kind, response.json()["report"])

    async def create(
        self,
        kind: ReportKind,
        fields: Mapping[str, Any],
        document: Optional[DocumentInput] = None,
    ) -> BaseModel:
        """
        Create a report.

        Args:
            kind: Report type
            fields: Report values keyed by wire name
            document: File to attach; the server requires one at creation

        Returns:
            The stored record
        """
        record = await self._write("POST", kind, self._path(kind), fields, document)
        logger.info(f"Created {kind.value} report {record.id}")
        return record

    async def list(self, kind: ReportKind, query: Optional[str] = None) -> List[BaseModel]:
        """List reports of one type, optionally filtered server-side."""
        params = {"q": query} if query else None
        response = await self._request("GET", self._path(kind, plural=True), params=params)
        return [self._record(kind, item) for item in response.json()]

    async def get(self, kind: ReportKind, report_id: str) -> BaseModel:
        response = await self._request("GET", self._path(kind, f"/{report_id}"), report_id)
        return self._record(kind, response.json())

    async def update(
        self,
        kind: ReportKind,
        report_id: str,
        fields: Mapping[str, Any],
        document: Optional[DocumentInput] = None,
    ) -> BaseModel:
        """
        Update a report; only the given fields change.

        The stored document is kept unless ``document`` is given.
        """
        path = self._path(kind, f"/{report_id}")
        return await self._write("PUT", kind, path, fields, document, report_id)

    async def delete(self, kind: ReportKind, report_id: str) -> str:
        """Delete a report and return the server's status message."""
        response = await self._request("DELETE", self._path(kind, f"/{report_id}"), report_id)
        return response.json()["message"]

    async def export_pdf(self, kind: ReportKind, query: Optional[str] = None) -> bytes:
        """Fetch the server-rendered PDF table of reports matching ``query``."""
        params = {"q": query} if query else None
        response = await self._request(
            "GET", self._path(kind, "/export", plural=True), params=params
        )
        return response.content
