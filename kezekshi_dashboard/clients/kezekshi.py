# kezekshi_dashboard/clients/kezekshi.py
from typing import Any, Dict, List, Optional

from kezekshi_dashboard.core.errors import ValidationError
from kezekshi_dashboard.core.http import KezekshiHTTP, decode_photo
from kezekshi_dashboard.core.tokens import common_token
from kezekshi_dashboard.utils.phone import normalize_phone

ALL = "all"
MIN_SMS_LENGTH = 50

def scope_params(region_id: Any = None, school_id: Any = None) -> Dict[str, str]:
    """Region/school query filters; empty values and "all" are not sent."""
    params: Dict[str, str] = {}
    if region_id and str(region_id) != ALL:
        params["id_region"] = str(region_id)
    if school_id and str(school_id) != ALL:
        params["school_id"] = str(school_id)
    return params

class KezekshiClient:
    """Typed-ish wrapper over every upstream Kezekshi endpoint the dashboard uses.

    Public ``/basic`` and ``/dashboard`` endpoints authenticate with the
    application token; ``/user`` and ``/events`` endpoints take the caller's
    bearer token.
    """

    def __init__(self, http: KezekshiHTTP):
        self.http = http

    @property
    def app_token(self) -> str:
        return common_token()

    # ----- account -----

    async def get_user_data(self, token: str, changes_after: str | None = None) -> Dict[str, Any]:
        params = {"changes_after": changes_after} if changes_after else None
        return await self.http.get_json("/user/get-user-data", token, params)

    async def change_user_data(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.http.post_json("/user/change-user-data", token, payload, lenient=True)

    async def login(self, phone: str, password: str, device_token: str = "string") -> Dict[str, Any]:
        payload = {"phone": normalize_phone(phone), "password": password, "device_token": device_token}
        return await self.http.post_json("/basic/login", self.app_token, payload)

    async def register_user(self, payload: Dict[str, Any]) -> Any:
        return await self.http.post_json("/basic/register", self.app_token, payload, lenient=True)

    async def search_phone_number(self, phone: str) -> Dict[str, Any]:
        return await self.http.post_json("/basic/search-phone-number", self.app_token,
                                         {"phone_number": normalize_phone(phone)})

    async def reset_password(self, phone: str, new_password: str) -> Any:
        return await self.http.post_json("/basic/reset-password", self.app_token,
                                         {"phone": phone, "new_password": new_password}, lenient=True)

    async def send_otp(self, phone: str) -> Any:
        return await self.http.post_json("/basic/send-otp", self.app_token, {"phone": phone}, lenient=True)

    async def verify_otp(self, phone: str, code: str) -> Any:
        return await self.http.post_json("/basic/verify-otp", self.app_token, {"phone": phone, "code": code}, lenient=True)

    async def send_verify_sms(self, recipient: str, verify_code: str, lang_code: str = "ru") -> Any:
        params = {"recipient": normalize_phone(recipient), "verify_code": verify_code, "lang_code": lang_code}
        return await self.http.get_json("/basic/send-verify-sms/", self.app_token, params)

    async def send_sms(self, recipient: str, text: str) -> Any:
        if len(text) < MIN_SMS_LENGTH:
            raise ValidationError(f"Message text must be at least {MIN_SMS_LENGTH} characters long")
        return await self.http.post_json("/basic/send-sms", self.app_token, {"recipient": recipient, "text": text})

    # ----- directory -----

    async def get_regions(self) -> List[Dict[str, Any]]:
        return await self.http.get_json("/basic/regions", self.app_token)

    async def get_schools(self, region_id: Any) -> List[Dict[str, Any]]:
        # The endpoint returns every school, region filtering is ours
        data = await self.http.get_json("/basic/schools", self.app_token)
        if str(region_id) == ALL or not isinstance(data, list):
            return data
        return [s for s in data if str(s.get("region_id")) == str(region_id)]

    # ----- statistics -----

    async def get_students_stats(self, region_id: Any = None, school_id: Any = None) -> Any:
        return await self.http.get_json("/dashboard/students-stats", self.app_token, scope_params(region_id, school_id))

    async def _dated_stats(self, path: str, start_date: str, end_date: str, region_id: Any, school_id: Any) -> Any:
        params = {"start_date": start_date, "end_date": end_date}
        params.update(scope_params(region_id, school_id))
        return await self.http.get_json(path, self.app_token, params)

    async def get_passage_stats(self, start_date: str, end_date: str, region_id: Any = None, school_id: Any = None) -> Any:
        return await self._dated_stats("/dashboard/passage-stats", start_date, end_date, region_id, school_id)

    async def get_dinner_stats(self, start_date: str, end_date: str, region_id: Any = None, school_id: Any = None) -> Any:
        return await self._dated_stats("/dashboard/dinner-stats", start_date, end_date, region_id, school_id)

    async def get_library_stats(self, start_date: str, end_date: str, region_id: Any = None, school_id: Any = None) -> Any:
        return await self._dated_stats("/dashboard/library-stats", start_date, end_date, region_id, school_id)

    async def get_summary_stats(self, start_date: str, end_date: str, region_id: Any = None, school_id: Any = None) -> Any:
        return await self._dated_stats("/dashboard/summary-stats", start_date, end_date, region_id, school_id)

    # ----- planned budgets -----

    async def set_planned_budget(self, token: str | None, payload: Dict[str, Any]) -> Any:
        return await self.http.post_json("/dashboard/set-planned-budget", token or self.app_token, payload)

    async def get_planned_budgets(self, token: str | None, month: str | None = None,
                                  school_id: Any = None) -> List[Dict[str, Any]]:
        params: Dict[str, str] = {}
        if month:
            params["month"] = month
        if school_id is not None and str(school_id) != ALL:
            params["school_id"] = str(school_id)
        return await self.http.get_json("/dashboard/planned-budgets", token or self.app_token, params or None)

    # ----- parents -----

    async def get_parent_data(self, token: str) -> Any:
        return await self.http.get_json("/user/parent-data", token)

    async def get_pupils(self, token: str) -> List[Dict[str, Any]]:
        return await self.http.get_json("/user/pupils", token)

    async def get_pupil_events(self, token: str, start_time: str, end_time: str,
                               event_classes: Optional[List[str]] = None, pupil_iin: str | None = None,
                               addition_data: bool = False) -> Dict[str, Any]:
        params: List[tuple] = [("start_time", start_time), ("end_time", end_time)]
        params += [("event_classes", cls) for cls in event_classes or []]
        if pupil_iin:
            params.append(("pupil_iin", pupil_iin))
        if addition_data:
            params.append(("addition_data", "true"))
        return await self.http.post_json("/events/pupil-events", token, params=params, raw_body="")

    async def get_pupil_statuses(self, token: str, event_classes: Optional[List[str]] = None,
                                 pupil_iin: str | None = None) -> Dict[str, Any]:
        params = [("event_classes", cls) for cls in event_classes or []]
        body = {"pupil_iin": pupil_iin} if pupil_iin else {}
        return await self.http.post_json("/events/pupil-statuses", token, body, params=params)

    async def download_student_photo(self, token: str, iin: str) -> Any:
        response = await self.http.get(f"/user/download-student-photo/{iin}", token,
                                       accept="application/json, text/plain, */*")
        return decode_photo(response)

    async def download_user_photo(self, token: str) -> Any:
        response = await self.http.post("/user/download-user-photo", token,
                                        accept="application/json, text/plain, */*", raw_body="")
        return decode_photo(response)
