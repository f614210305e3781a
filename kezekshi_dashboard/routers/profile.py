from fastapi import APIRouter, Depends

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.deps.auth import AuthContext, require_page
from kezekshi_dashboard.deps.services import get_client
from kezekshi_dashboard.schemas.account import ProfileOut, ProfileUpdate
from kezekshi_dashboard.services.profile import ProfileService

router = APIRouter(prefix="/profile", tags=["Profile"])

@router.get("", response_model=ProfileOut)
async def get_profile(ctx: AuthContext = Depends(require_page("profile")), client: KezekshiClient = Depends(get_client)):
    return await ProfileService(client).load(ctx.token)

@router.get("/edit-form", response_model=ProfileUpdate)
async def edit_form(ctx: AuthContext = Depends(require_page("profile"))):
    return ProfileService.edit_form(ctx.profile)

@router.patch("")
async def update_profile(
    body: ProfileUpdate,
    ctx: AuthContext = Depends(require_page("profile")),
    client: KezekshiClient = Depends(get_client),
):
    user = await ProfileService(client).update(ctx.token, body)
    return {"user": user, "message": "Профиль обновлен"}
