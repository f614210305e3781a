from fastapi import Depends

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.deps.auth import AuthContext, get_auth_ctx
from kezekshi_dashboard.deps.services import get_client, make_budget_repo
from kezekshi_dashboard.repositories.budget import BudgetRepository

async def get_budget_repo(
    ctx: AuthContext = Depends(get_auth_ctx),
    client: KezekshiClient = Depends(get_client),
) -> BudgetRepository:
    return make_budget_repo(client, ctx.token)
