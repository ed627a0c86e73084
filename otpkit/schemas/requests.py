from pydantic import BaseModel, EmailStr, Field


class EmailVerificationIn(BaseModel):
    email: EmailStr = Field(..., description="Address to verify", max_length=255)


class OtpAttemptIn(BaseModel):
    code: str = Field(..., min_length=1, max_length=64)
    identifier: str | None = Field(
        None, description="Key the code was issued under; defaults to the client address"
    )


class OtpScopeIn(BaseModel):
    identifier: str | None = None
