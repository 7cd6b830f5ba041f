from fastapi import APIRouter

from helpdesk.api.v1.dashboard import router as dashboard_router
from helpdesk.api.v1.reports import router as reports_router
from helpdesk.api.v1.tickets import router as tickets_router
from helpdesk.api.v1.users import router as users_router

api_router = APIRouter()
api_router.include_router(users_router)
api_router.include_router(tickets_router)
api_router.include_router(dashboard_router)
api_router.include_router(reports_router)
