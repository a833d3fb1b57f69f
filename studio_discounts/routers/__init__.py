# studio_discounts/routers/__init__.py

from .auth.activity_router import router as activity_router

from .discounts.discount_router import router as discount_router
from .discounts.redemption_router import router as redemption_router


__all__ = [
"activity_router",

"discount_router",
"redemption_router",
]
