from typing import Optional

from fastapi import FastAPI

from core.exceptions import register_exception_handlers
from core.rate_limiter import RedisRateLimitMiddleware
from db.db_operation import MongoConnection
from db.redis_client import create_redis_client
from routes import admin_routes, auth, menu_routes, restaurant_routes
from services.admin_service import AuditService
from services.auth_service import AuthService, RefreshTokenBlocklist
from services.menu_service import MenuService
from services.otp_service import OtpChallengeManager
from services.restaurant_service import RestaurantService
from services.user_service import UserService
from settings.config import Settings, get_settings
from utils.clock import Clock, utc_now
from utils.jwt_handler import TokenIssuer
from utils.logger import configure_logging, get_logger
from utils.sms import LoggingOtpSender, OtpSender

logger = get_logger("main")


def create_app(
    settings: Optional[Settings] = None,
    mongo_client=None,
    redis=None,
    clock: Clock = utc_now,
    otp_sender: Optional[OtpSender] = None,
) -> FastAPI:
    """
    Build the application with every collaborator injected. Tests pass in-memory
    Mongo and Redis clients and a fixed clock; production uses the defaults.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    mongo = MongoConnection(settings, client=mongo_client)
    redis = redis if redis is not None else create_redis_client(settings)
    tokens = TokenIssuer(settings, clock)
    sender = otp_sender or LoggingOtpSender(reveal_codes=not settings.is_production)

    users = UserService(mongo, clock)
    audit = AuditService(mongo, clock)
    restaurants = RestaurantService(mongo, users, audit, clock)

    app = FastAPI(title=settings.PROJECT_NAME, version="1.0.0")
    app.state.settings = settings
    app.state.mongo = mongo
    app.state.redis = redis
    app.state.auth_service = AuthService(
        users,
        OtpChallengeManager(redis, settings, clock),
        tokens,
        sender,
        RefreshTokenBlocklist(redis),
    )
    app.state.audit_service = audit
    app.state.restaurant_service = restaurants
    app.state.menu_service = MenuService(mongo, restaurants, audit, clock)

    register_exception_handlers(app)
    if settings.RATE_LIMIT_ENABLED:
        app.add_middleware(
            RedisRateLimitMiddleware,
            redis=redis,
            tokens=tokens,
            requests=settings.RATE_LIMIT_REQUESTS,
            window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
        )

    @app.get("/")
    async def health_check():
        logger.info("Health check is successful")
        return {
            "status": "ok",
            "app": settings.PROJECT_NAME,
            "message": "FastAPI is running"
        }

    @app.on_event("startup")
    async def startup_event():
        await mongo.connect()
        await mongo.create_indexes()

    @app.on_event("shutdown")
    async def shutdown_event():
        await redis.aclose()
        mongo.client.close()

    app.include_router(auth.router)
    app.include_router(restaurant_routes.router)
    app.include_router(menu_routes.router)
    app.include_router(admin_routes.router)
    return app


app = create_app()
