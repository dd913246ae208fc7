from fastapi import APIRouter

from otms.api.holidays import holidays_router
from otms.api.requests import requests_router
from otms.api.staff import staff_router

api_router = APIRouter()
api_router.include_router(requests_router)
api_router.include_router(holidays_router)
api_router.include_router(staff_router)
