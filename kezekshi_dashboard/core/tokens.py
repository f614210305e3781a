import hashlib
import time

from kezekshi_dashboard.core.config import settings

def generate_common_token(secret: str, now: float | None = None) -> str:
    """Daily application token: sha256 of the day number since epoch followed by the secret."""
    current = time.time() if now is None else now
    days = int(current // 86400)
    return hashlib.sha256(f"{days}{secret}".encode("utf-8")).hexdigest()

def common_token() -> str:
    return settings.COMMON_TOKEN or generate_common_token(settings.TOKEN_SECRET)
