from fastapi import Request

from kezekshi_dashboard.clients.kezekshi import KezekshiClient
from kezekshi_dashboard.core.config import settings
from kezekshi_dashboard.repositories.budget import BudgetRepository, RemoteBudgetRepository, SqlBudgetRepository

def get_client(request: Request) -> KezekshiClient:
    return KezekshiClient(request.app.state.http)

def make_budget_repo(client: KezekshiClient, token: str | None) -> BudgetRepository:
    if settings.BUDGET_BACKEND == "remote":
        return RemoteBudgetRepository(client, token)
    return SqlBudgetRepository()
