from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, EmailStr, Field, validator
from typing import Optional
import secrets
from exam_backend.config import settings
from exam_backend.errors import TransportError
from exam_backend.services import email_service
from exam_backend.services.certificate import render_certificate, CERTIFICATE_SUBJECT

router = APIRouter(tags=["notifications"])


def generate_otp(length: int = settings.OTP_LENGTH) -> str:
    """Random numeric code with no leading zero (10000-99999 for five digits)"""
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))


class OTPRequest(BaseModel):
    email: EmailStr


class CertificateRequest(BaseModel):
    email: EmailStr
    recipient_name: str = Field(..., alias="recipientName")
    score: float
    exam_id: Optional[int] = Field(None, alias="examId")

    @validator('recipient_name')
    def validate_recipient_name(cls, v):
        if not v or not v.strip():
            raise ValueError('recipientName is required')
        return v.strip()

    @validator('score')
    def validate_score(cls, v):
        if not 0 <= v <= 10:
            raise ValueError('score must be a number between 0 and 10')
        return v

    class Config:
        populate_by_name = True


@router.post("/send-otp")
def send_otp(request: OTPRequest):
    """
    Email a one-time code and return it to the caller.

    The client compares the code itself; this is not a security boundary.
    """
    otp = generate_otp()
    try:
        email_service.send_otp_email(request.email, otp)
    except TransportError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "message": "The OTP code has been sent to your email.",
        "email": request.email,
        "otp": otp,
    }


@router.post("/send-certificate")
def send_certificate(request: CertificateRequest):
    """Render the certificate and email it to the participant"""
    html = render_certificate(request.recipient_name, request.score, request.exam_id)
    try:
        email_service.send_certificate_email(request.email, CERTIFICATE_SUBJECT, html)
    except TransportError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "message": "The certificate has been sent to your email.",
        "email": request.email,
        "recipientName": request.recipient_name,
        "score": request.score,
        "examId": request.exam_id,
    }
