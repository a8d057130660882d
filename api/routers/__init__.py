"""
Router package for the Program Content API.

This package contains all API routers organized by domain:
- health: Health check endpoints
- programs: Program CRUD and release
- modules: Modules of a program (resolution, creation, reorder, delete)
- sessions: Sessions of a module, with overrides
- exercises: Exercises of a session and their sets
- clients: Program assignment to client users
"""

from api.routers.clients import router as clients_router
from api.routers.exercises import router as exercises_router
from api.routers.health import router as health_router
from api.routers.modules import router as modules_router
from api.routers.programs import router as programs_router
from api.routers.sessions import router as sessions_router

__all__ = [
    "clients_router",
    "exercises_router",
    "health_router",
    "modules_router",
    "programs_router",
    "sessions_router",
]
