"""
The Bank Cards ASGI application.

Wires the lifespan (logging, schema, role catalog), CORS, the domain error
handler and the three routers: /auth, /cards (transfers included) and
/admin.

Running locally:
    uvicorn bankcards.main:app --reload
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import make_url

from bankcards.config import settings
from bankcards.database import AsyncSessionLocal, Base, engine
from bankcards.exceptions import register_exception_handlers
from bankcards.logging_config import configure_logging, get_logger
from bankcards.routers import admin, auth, cards
from bankcards.services.user_service import seed_roles

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      Configures logging, makes sure a SQLite file has a directory to
      live in, creates missing tables and seeds the role catalog. In
      production the schema would come from migrations instead.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    configure_logging(settings.LOG_LEVEL, format_as_json=settings.LOG_JSON)

    url = make_url(settings.DATABASE_URL)
    if url.get_backend_name() == "sqlite" and url.database not in (None, "", ":memory:"):
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as session:
        await seed_roles(session)
        await session.commit()

    logger.info("application_started", version=settings.APP_VERSION)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Bank card management REST API: card lifecycle, transfers between own cards, user administration",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(cards.router, prefix="/cards", tags=["Cards"])
app.include_router(admin.router, prefix="/admin", tags=["Admin"])


@app.get("/health", tags=["Health"])
async def health_check():
    """Liveness probe for load balancers and orchestrators."""
    return {"status": "ok", "version": settings.APP_VERSION}
