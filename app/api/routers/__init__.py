"""
app/api/routers package marker.
"""

from app.api.routers.booking_import import router as booking_import_router

__all__ = [
    "booking_import_router",
]
