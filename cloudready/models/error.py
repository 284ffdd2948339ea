"""Error response models for cloud-ready-web."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from cloudready.models.constants import WIRE_DATETIME_FORMAT
from cloudready.models.user import utcnow


class FieldError(BaseModel):
    """A per-field validation failure."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    field: str = Field(..., examples=["email"])
    rejected_value: Any = Field(None, examples=["invalid-email"])
    message: str = Field(..., examples=["Email should be valid"])


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    code: str = Field(..., examples=["USER_NOT_FOUND"])
    message: str = Field(..., examples=["User not found with id: 123"])
    status: int = Field(..., examples=[404])
    path: str = Field(..., examples=["/api/users/123"])
    timestamp: datetime = Field(default_factory=utcnow)
    field_errors: Optional[List[FieldError]] = None
    correlation_id: Optional[str] = Field(None, examples=["abc123"])

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return value.strftime(WIRE_DATETIME_FORMAT)

    @classmethod
    def for_request(
        cls,
        request,
        status: int,
        code: str,
        message: str,
        field_errors: Optional[List[FieldError]] = None,
    ) -> "ErrorResponse":
        """Build an envelope for a Starlette/FastAPI request."""
        return cls(
            code=code,
            message=message,
            status=status,
            path=request.url.path,
            field_errors=field_errors,
            correlation_id=getattr(request.state, "correlation_id", None),
        )

    def to_body(self) -> Dict[str, Any]:
        """JSON-ready body with unset optional members omitted."""
        body = self.model_dump(mode="json", by_alias=True)
        for key in ("fieldErrors", "correlationId"):
            if body.get(key) is None:
                body.pop(key, None)
        return body
