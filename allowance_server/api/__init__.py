from fastapi import APIRouter

from allowance_server.interfaces.http.routers import claims, settings, wallets


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(claims.router, prefix="/claims", tags=["claims"])
    router.include_router(wallets.router, prefix="/wallets", tags=["wallets"])
    router.include_router(settings.router, prefix="/settings", tags=["settings"])
    return router


__all__ = [
    "create_api_router",
]
