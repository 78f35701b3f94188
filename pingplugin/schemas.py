"""Request model validating execute parameters at the plugin boundary."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from pingplugin.errors import InvalidArgument, MissingField
from pingplugin.probe import MAX_COUNT

DEFAULT_COUNT = 4


class ExecuteRequest(BaseModel):
    """Parameters accepted by an execute call."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    host: str = Field(..., description="Target host name or IP address")
    count: int = Field(DEFAULT_COUNT, ge=1, le=MAX_COUNT, description="Number of echo requests")
    continue_to_iterate: bool = Field(
        False,
        alias="continueToIterate",
        description="Accumulate the result into session history",
    )

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Reject empty or whitespace-only hosts."""
        v = v.strip()
        if not v:
            raise ValueError("host parameter is required")
        return v

    @field_validator("count", mode="before")
    @classmethod
    def check_count_type(cls, v: Any) -> Any:
        """Treat an explicit null count as absent; refuse booleans and strings.

        Whole floats (JSON numbers such as 4.0) are left to the int coercion.
        """
        if v is None:
            return DEFAULT_COUNT
        if isinstance(v, (bool, str)):
            raise ValueError(f"count must be a number, got {v!r}")
        return v


def parse_request(parameters: Mapping[str, Any] | ExecuteRequest) -> ExecuteRequest:
    """Validate raw parameters into an ExecuteRequest.

    Raises:
        MissingField: host is absent
        InvalidArgument: any parameter has an unusable value
    """
    if isinstance(parameters, ExecuteRequest):
        return parameters
    if not isinstance(parameters, Mapping):
        raise InvalidArgument(
            f"parameters must be a mapping, got {type(parameters).__name__}"
        )

    try:
        return ExecuteRequest.model_validate(dict(parameters))
    except ValidationError as e:
        errors = e.errors()
        for error in errors:
            if error["type"] == "missing":
                raise MissingField(str(error["loc"][0])) from e

        first = errors[0]
        field = ".".join(str(part) for part in first["loc"]) or "parameters"
        message = first["msg"].removeprefix("Value error, ")
        if field == "host" and message == "host parameter is required":
            raise InvalidArgument(message) from e
        raise InvalidArgument(f"invalid {field}: {message}") from e
