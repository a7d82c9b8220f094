from fastapi import APIRouter, Depends

from shortly import rate_limit
from shortly.database import StoreStatus
from shortly.dependencies import get_store_status

router = APIRouter(tags=["health"])

# простая проверка живости
@router.get("/health")
async def health():
    return {"status": "ok"}

# готовность: доступность БД и Redis
@router.get("/ready")
async def readiness(store_status: StoreStatus = Depends(get_store_status)):
    details = {
        "db": "ok" if store_status == StoreStatus.CONNECTED else "unavailable",
        "redis": "ok" if rate_limit.ping() else "unavailable",
    }
    return {
        "ready": store_status == StoreStatus.CONNECTED,
        "demo_mode": store_status != StoreStatus.CONNECTED,
        "details": details,
    }
