from fastapi import APIRouter

from .access import router as access_router
from .classrooms import router as classrooms_router
from .master_role_requests import router as master_role_router
from .memberships import router as memberships_router
from .mentors import router as mentors_router
from .resignation_requests import router as resignation_router
from .staff_requests import router as staff_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(access_router, tags=["access"])
api_router.include_router(
    master_role_router, prefix="/master-role-requests", tags=["master-role requests"]
)
api_router.include_router(staff_router, prefix="/staff-requests", tags=["staff requests"])
api_router.include_router(
    resignation_router, prefix="/resignation-requests", tags=["resignation requests"]
)
api_router.include_router(
    memberships_router, prefix="/classroom-memberships", tags=["enrollments"]
)
api_router.include_router(classrooms_router, prefix="/classrooms", tags=["classrooms"])
api_router.include_router(mentors_router, prefix="/mentors", tags=["mentors"])
