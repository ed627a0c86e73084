from contextlib import contextmanager
from typing import Annotated, Iterator

from fastapi import APIRouter, Depends, HTTPException, Response, status

from otpkit.application.email_verification import EmailVerificationOtp
from otpkit.application.otp_manager import OtpManager
from otpkit.domain.entities import Notifiable, OtpStatus
from otpkit.domain.errors import DeliveryFailed, MissingIdentifier, StoreUnavailable
from otpkit.presentation.dependencies import get_otp_manager
from otpkit.schemas.requests import EmailVerificationIn, OtpAttemptIn, OtpScopeIn
from otpkit.schemas.responses import OtpStatusOut

router = APIRouter(prefix="/otp", tags=["OTP"])

_FAILED_STATUS = {
    OtpStatus.EMPTY: status.HTTP_404_NOT_FOUND,
    OtpStatus.MISMATCHED: status.HTTP_400_BAD_REQUEST,
}


@contextmanager
def _otp_errors() -> Iterator[None]:
    try:
        yield
    except StoreUnavailable:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="otp store unavailable"
        )
    except MissingIdentifier:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="identifier required"
        )
    except DeliveryFailed:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY, detail="could not deliver code"
        )


def _scoped(otp: OtpManager, identifier: str | None) -> OtpManager:
    return otp.identifier(identifier) if identifier else otp


@router.post(
    "/email-verification",
    status_code=202,
    response_model=OtpStatusOut,
)
async def post_email_verification(
    body: EmailVerificationIn,
    otp: Annotated[OtpManager, Depends(get_otp_manager)],
):
    email = body.email.strip().lower()
    with _otp_errors():
        result = await otp.identifier(email).send(
            EmailVerificationOtp(email=email), Notifiable(channel="mail", route=email)
        )
    return OtpStatusOut.from_result(result)


@router.post("/attempt", response_model=OtpStatusOut)
async def post_attempt(
    body: OtpAttemptIn,
    otp: Annotated[OtpManager, Depends(get_otp_manager)],
):
    with _otp_errors():
        result = await _scoped(otp, body.identifier).attempt(body.code)
    if result.status in _FAILED_STATUS:
        raise HTTPException(
            status_code=_FAILED_STATUS[result.status], detail=result.status.value
        )
    return OtpStatusOut.from_result(result)


@router.post("/resend", status_code=202, response_model=OtpStatusOut)
async def post_resend(
    body: OtpScopeIn,
    otp: Annotated[OtpManager, Depends(get_otp_manager)],
):
    with _otp_errors():
        result = await _scoped(otp, body.identifier).update()
    if result.status == OtpStatus.EMPTY:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=result.status.value)
    return OtpStatusOut.from_result(result)


@router.delete("", status_code=204)
async def delete_otp(
    otp: Annotated[OtpManager, Depends(get_otp_manager)],
    identifier: str | None = None,
):
    with _otp_errors():
        await _scoped(otp, identifier).clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
