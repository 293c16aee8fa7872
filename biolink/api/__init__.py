"""HTTP routers."""

from biolink.api.admin import router as admin_router
from biolink.api.public import router as public_router
from biolink.api.redirect import router as redirect_router

__all__ = ["admin_router", "public_router", "redirect_router"]
