"""Result type returned by the tool dispatcher."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ErrorKind


class ToolCallResult(BaseModel):
    """Outcome of one tool dispatch.

    A failed call still carries whatever output the handler produced (for
    example the combined output of a command that exited non-zero).
    """

    model_config = ConfigDict(frozen=True)

    output: str = ""
    error: ErrorKind | None = None
    detail: str | None = Field(default=None, description="Human-readable failure detail")

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_response_payload(self) -> dict[str, Any]:
        """Payload sent back to the model as the tool's response."""
        payload: dict[str, Any] = {"output": self.output}
        if self.error is not None:
            payload["error"] = f"{self.error.value}: {self.detail}" if self.detail else self.error.value
        return payload
