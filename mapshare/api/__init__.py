"""HTTP API routers, mounted under /api."""

from fastapi import APIRouter

from mapshare.api import auth, employees, health, proxy, sessions, state, user_states, users

api_router = APIRouter(prefix="/api")
api_router.include_router(state.router)
api_router.include_router(user_states.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(sessions.router)
api_router.include_router(sessions.legacy_router)
api_router.include_router(employees.router)
api_router.include_router(proxy.router)
api_router.include_router(health.router)

__all__ = ["api_router"]
