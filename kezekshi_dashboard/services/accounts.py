# kezekshi_dashboard/services/accounts.py
from typing import Any, Dict

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.errors import KezekshiAPIError, ValidationError
from kezekshi_dashboard.core.logging import log
from kezekshi_dashboard.schemas.account import LoginOut, RegisterRequest
from kezekshi_dashboard.services.access import AccessPolicy
from kezekshi_dashboard.utils.phone import normalize_phone

class AccountService:
    def __init__(self, client: KezekshiClient):
        self.client = client

    async def login(self, phone: str, password: str, device_token: str = "") -> LoginOut:
        if not phone or not password:
            raise ValidationError("Введите телефон и пароль.")
        resp = await self.client.login(normalize_phone(phone), password, device_token)
        token = (resp or {}).get("access_token")
        if not token:
            raise KezekshiAPIError(502, "Токен не получен")

        profile = await self.client.get_user_data(token)
        log.info("login_succeeded", roles=(profile or {}).get("roles"))
        return LoginOut(
            access_token=token,
            profile=profile,
            landing_page=AccessPolicy(profile).landing_page(),
        )

    async def check_phone_available(self, phone: str) -> Dict[str, Any]:
        resp = await self.client.search_phone_number(normalize_phone(phone))
        if resp and resp.get("userIsRegistered"):
            raise ValidationError("Пользователь с таким номером уже зарегистрирован.")
        return resp or {}

    async def register(self, form: RegisterRequest) -> Any:
        payload = {
            "phone": normalize_phone(form.phone),
            "password": form.password,
            "fullname": f"{form.last_name} {form.first_name} {form.middle_name}".strip(),
            "iin": form.iin,
            "device_token": "",
        }
        result = await self.client.register_user(payload)
        log.info("user_registered")
        return result

    async def reset_password(self, phone: str, password: str) -> Any:
        return await self.client.reset_password(normalize_phone(phone), password)
