# kezekshi_dashboard/services/profile.py
import asyncio
from typing import Any, Dict, List, Optional

import httpx

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.errors import KezekshiAPIError
from kezekshi_dashboard.core.logging import log
from kezekshi_dashboard.schemas.account import ProfileOut, ProfileUpdate
from kezekshi_dashboard.utils.photos import normalize_photo_url

def region_name(user: Dict[str, Any], regions: List[Dict[str, Any]]) -> Any:
    region_id = user.get("region_id")
    if not region_id:
        return ""
    found = next((r for r in regions if r.get("id") == region_id), None)
    return found.get("name_ru") if found else region_id

def school_display_name(user: Dict[str, Any], schools: List[Dict[str, Any]]) -> Any:
    school_id = user.get("school_id")
    if not school_id:
        return ""
    found = next((s for s in schools if s.get("school_id") == school_id), None)
    return found.get("school_name_ru") if found else school_id

class ProfileService:
    def __init__(self, client: KezekshiClient):
        self.client = client

    async def load(self, token: str) -> ProfileOut:
        user, regions = await asyncio.gather(
            self.client.get_user_data(token),
            self.client.get_regions(),
        )
        user = user or {}
        regions = regions if isinstance(regions, list) else []

        schools: List[Dict[str, Any]] = []
        if user.get("region_id"):
            data = await self.client.get_schools(user["region_id"])
            schools = data if isinstance(data, list) else []

        return ProfileOut(
            user=user,
            region_name=region_name(user, regions),
            school_name=school_display_name(user, schools),
            photo_url=await self.photo_url(token),
            regions=regions,
            schools=schools,
        )

    async def photo_url(self, token: str) -> Optional[str]:
        try:
            return normalize_photo_url(await self.client.download_user_photo(token))
        except (KezekshiAPIError, httpx.HTTPError) as e:
            log.warning("user_photo_failed", error=str(e))
            return None

    async def update(self, token: str, form: ProfileUpdate) -> Dict[str, Any]:
        """Save profile changes and return the refreshed user record."""
        await self.client.change_user_data(token, {
            "phone": form.phone,
            "new_fullname": form.fullname,
            "new_iin": form.iin,
            "device_token": "",
        })
        log.info("profile_updated")
        return await self.client.get_user_data(token)

    @staticmethod
    def edit_form(user: Optional[Dict[str, Any]]) -> ProfileUpdate:
        user = user or {}
        return ProfileUpdate(
            fullname=user.get("fullname") or "",
            phone=user.get("phone") or "",
            iin=user.get("iin") or "",
        )
