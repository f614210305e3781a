# kezekshi_dashboard/routers/auth.py
from fastapi import APIRouter, Depends

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.deps.services import get_client
from kezekshi_dashboard.schemas.account import (
    LoginOut, LoginRequest, OtpVerifyRequest, PhoneRequest, RegisterRequest, ResetPasswordRequest,
)
from kezekshi_dashboard.services.accounts import AccountService
from kezekshi_dashboard.utils.phone import normalize_phone

router = APIRouter(prefix="/auth", tags=["Auth"])

@router.post("/login", response_model=LoginOut)
async def login(body: LoginRequest, client: KezekshiClient = Depends(get_client)):
    return await AccountService(client).login(body.phone, body.password, body.device_token)

@router.post("/phone-lookup")
async def phone_lookup(body: PhoneRequest, client: KezekshiClient = Depends(get_client)):
    """Fails with 400 when the phone already belongs to a user"""
    return await AccountService(client).check_phone_available(body.phone)

@router.post("/register")
async def register(body: RegisterRequest, client: KezekshiClient = Depends(get_client)):
    return await AccountService(client).register(body)

@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, client: KezekshiClient = Depends(get_client)):
    return await AccountService(client).reset_password(body.phone, body.password)

@router.post("/otp/send")
async def send_otp(body: PhoneRequest, client: KezekshiClient = Depends(get_client)):
    return await client.send_otp(normalize_phone(body.phone))

@router.post("/otp/verify")
async def verify_otp(body: OtpVerifyRequest, client: KezekshiClient = Depends(get_client)):
    return await client.verify_otp(normalize_phone(body.phone), body.code)
