from fastapi import APIRouter

from app.api.routes import health, auth, tours, availabilities, bookings, closed_days, testimonials
from app.api.routes import admin, discounts, notifications, content

api_router = APIRouter(prefix="/api")
api_router.include_router(health.router, prefix="/health", tags=["health"])  # GET /api/health
api_router.include_router(auth.router, tags=["auth"])  # /admin/login, /admin/logout, /admin/me, /csrf-token
api_router.include_router(tours.router, tags=["tours"])  # /tours + /admin/tours
api_router.include_router(availabilities.router, tags=["availabilities"])  # /availabilities + /admin/availabilities
api_router.include_router(bookings.router, prefix="/bookings", tags=["bookings"])  # POST /, POST /quote, GET /reference/{ref}
api_router.include_router(closed_days.router, prefix="/closed-days", tags=["closed-days"])
api_router.include_router(testimonials.router, tags=["testimonials"])  # /testimonials, /reviews/{ref}, /admin/testimonials
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])  # requests, payments, settings, stats
api_router.include_router(discounts.router, prefix="/admin/discounts", tags=["discounts"])
api_router.include_router(notifications.router, prefix="/admin/notifications", tags=["notifications"])
api_router.include_router(content.router, tags=["content"])  # gallery, articles
