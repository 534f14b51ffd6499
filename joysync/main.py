from fastapi import FastAPI
from fastapi_pagination import add_pagination

from joysync.config import get_settings
from joysync.core.changes import ChangeNotifier
from joysync.db import init_db
from joysync.infra.logging_config import LoggingConfig, get_logger
from joysync.routers.chatbot_router import chatbot_router
from joysync.routers.conversations_router import conversations_router
from joysync.routers.messages_router import messages_router
from joysync.routers.profiles_router import profiles_router
from joysync.routers.status_router import status_router

logger = get_logger()


def create_app(testing: bool = False) -> FastAPI:
    settings = get_settings()
    LoggingConfig()

    app = FastAPI(title="Joy Sync API", version="0.1.0")
    app.state.notifier = ChangeNotifier()

    if not testing:
        init_db()

    app.include_router(conversations_router)
    app.include_router(messages_router)
    app.include_router(status_router)
    app.include_router(profiles_router)
    app.include_router(chatbot_router)

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok", "app": settings.app_name}

    add_pagination(app)
    logger.info("Application created (environment=%s)", settings.environment)
    return app


app = create_app()
