"""API routes package.

Routers are organized by audience:

- health: Health check endpoints
- refunds: Customer refund requests
- admin_refunds: Admin review, confirmation and manual completion
- webhooks: Stripe refund events

All routers are registered in main.py with /api prefix.
"""

from staybook_api.routes.admin_refunds import router as admin_refunds_router
from staybook_api.routes.health import router as health_router
from staybook_api.routes.refunds import router as refunds_router
from staybook_api.routes.webhooks import router as webhooks_router

__all__ = [
    "admin_refunds_router",
    "health_router",
    "refunds_router",
    "webhooks_router",
]
