# Main Router - membership_app/api/v1/routes/router.py
from fastapi import APIRouter
from membership_app.api.v1.routes.admin.card_ranges import router as card_ranges_router
from membership_app.api.v1.routes.admin.assignments import router as assignments_router
from membership_app.api.v1.routes.admin.memberships import router as admin_memberships_router
from membership_app.api.v1.routes.membership.membership import router as membership_router

router = APIRouter()

# Member routes
router.include_router(membership_router)

# Admin routes (role checked per router)
router.include_router(card_ranges_router)
router.include_router(assignments_router)
router.include_router(admin_memberships_router)
