import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from lunchbot.bot import LunchBot
from lunchbot.config import Settings, load_settings
from lunchbot.logging_config import setup_logging
from lunchbot.routes import health_router, slack_router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None, bot: Optional[LunchBot] = None) -> FastAPI:
    """Build the FastAPI app. Without a bot, one is created and started on startup."""
    settings = settings or (bot.settings if bot else load_settings())

    app = FastAPI(
        title="Lunch Menu Bot",
        description="Daily lunch menu notifications with an alternate-menu picker",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.bot = bot

    app.include_router(health_router)
    app.include_router(slack_router)

    @app.on_event("startup")
    def on_startup():
        """Create the bot if needed and start its scheduler.

        Missing configuration or a rejected Slack token stops the server with
        a clear error.
        """
        if app.state.bot is None:
            setup_logging(settings.log_level, settings.log_dir)
            app.state.bot = LunchBot(settings)
        try:
            app.state.bot.start()
        except Exception as e:
            raise RuntimeError(f"Lunch menu bot failed to start: {e}") from e

    @app.on_event("shutdown")
    def on_shutdown():
        if app.state.bot is not None and app.state.bot.is_running:
            app.state.bot.stop()

    @app.exception_handler(404)
    async def not_found_handler(request: Request, exc):
        return JSONResponse({"error": "Not found"}, status_code=404)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=app.state.settings.server_host, port=app.state.settings.server_port)
