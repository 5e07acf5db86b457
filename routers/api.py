from fastapi import APIRouter

from routers.auth_router import auth_router
from routers.booking_router import booking_router, user_booking_router
from routers.email_action_router import email_action_router
from routers.guest_router import guest_router
from routers.infrastructure_router import infrastructure_router, admin_infrastructure_router, \
    manager_infrastructure_router, question_router
from routers.preference_router import preference_router
from routers.user_management_router import user_management_router

router = APIRouter(
    prefix='/api'
)

router.include_router(auth_router)
router.include_router(admin_infrastructure_router)
router.include_router(manager_infrastructure_router)
router.include_router(question_router)
router.include_router(infrastructure_router)
router.include_router(user_booking_router)
router.include_router(booking_router)
router.include_router(user_management_router)
router.include_router(preference_router)
router.include_router(email_action_router)
router.include_router(guest_router)
