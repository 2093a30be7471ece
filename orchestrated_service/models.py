"""Response shapes served by the orchestrated service."""

from http import HTTPStatus

from pydantic import BaseModel, ConfigDict, Field


class ServiceResponse(BaseModel):
    """Successful resource lookup response."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., alias="ID", description="Resource identifier echoed from the path")
    message: str = Field(..., alias="Message")
    status: str = Field(default=HTTPStatus.OK.phrase, alias="Status")

    @classmethod
    def ok(cls, resource_id: str, message: str) -> "ServiceResponse":
        return cls(id=resource_id, message=message, status=HTTPStatus.OK.phrase)


class ProblemDetail(BaseModel):
    """RFC 7807 problem document."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(default="about:blank", description="URI identifying the problem type")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Explanation specific to this occurrence")
    instance: str = Field(..., description="URI reference of the failing request")
