from lunchbot.routes.health import router as health_router
from lunchbot.routes.slack import router as slack_router

__all__ = [
    'health_router',
    'slack_router',
]
