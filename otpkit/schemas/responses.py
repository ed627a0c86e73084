from typing import Any, Literal

from pydantic import BaseModel, Field

from otpkit.domain.entities import OtpResult


class OtpStatusOut(BaseModel):
    status: Literal["sent", "empty", "mismatched", "processed"]
    message: str = Field(..., description="Translation key for the outcome")
    result: Any = None

    @classmethod
    def from_result(cls, result: OtpResult) -> "OtpStatusOut":
        return cls(
            status=result.status.name.lower(),
            message=result.status.value,
            result=result.result,
        )
