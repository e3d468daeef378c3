import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.access.router import router as access_router
from app.admin_settings.router import router as admin_settings_router
from app.catalog.router import router as catalog_router
from app.certificates.router import router as certificates_router
from app.config import Settings
from app.database import init_db
from app.grading.router import router as grading_router
from app.notifications.dispatcher import NullDispatcher, RedisDispatcher
from app.payments.router import router as payments_router
from app.pricing.router import router as pricing_router
from app.sections.router import router as sections_router
from shared.database.redis_client import get_redis_client
from shared.middleware.error_handler import error_envelope_middleware, register_error_handlers
from shared.middleware.request_id import request_id_middleware

logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(name)s: %(message)s")


def get_settings() -> Settings:
    return Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db(settings.course_database_url)

    app.state.redis = get_redis_client(settings.redis_url)
    if settings.notifications_channel:
        app.state.dispatcher = RedisDispatcher(app.state.redis, settings.notifications_channel)
    else:
        app.state.dispatcher = NullDispatcher()

    yield

    # Shutdown
    await app.state.redis.aclose()


SWAGGER_DESCRIPTION = """\
## Lyceum Course Service

Business rules for paid course sections: who can open a section, what grade
a student has earned, whether they qualify for a certificate, and how section
prices follow a change in the course total.

### Domain Tags

| Tag | Description |
|-----|-------------|
| **Access** | Section unlock resolution, per student or as a gradebook matrix |
| **Grading** | Lecture watch / submission / instructor grade writes, section + course grades |
| **Certificates** | Eligibility, requests, approval, issuance, public verification |
| **Pricing** | Course cost changes with propose → confirm / cancel |
| **Sections** | Section create / update with paid-price budget checks |
| **Section Payments** | Manual per-section payment submission and review |
| **Admin Settings** | Platform passing grade |
| **Catalog** | Cascade deletes across course / group / section / content |

### Authentication

All endpoints (except health check and certificate verification)
require a valid JWT Bearer token in the `Authorization` header.
Token structure: `{"sub": "<user_uuid>", "email": "...", "roles": [...]}`.

### Status Transitions

```
SectionPayment:     pending → approved | rejected
PendingCostChange:  pending → approved_auto | cancelled
CertificateRequest: requested → approved | rejected
```
"""


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Lyceum Course Service",
        version="0.1.0",
        description=SWAGGER_DESCRIPTION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        max_age=600,
    )
    app.middleware("http")(error_envelope_middleware)
    app.middleware("http")(request_id_middleware)
    register_error_handlers(app)

    app.include_router(access_router, prefix="/api/v1")
    app.include_router(grading_router, prefix="/api/v1")
    app.include_router(certificates_router, prefix="/api/v1")
    app.include_router(sections_router, prefix="/api/v1")
    app.include_router(pricing_router, prefix="/api/v1")
    app.include_router(payments_router, prefix="/api/v1")
    app.include_router(admin_settings_router, prefix="/api/v1")
    app.include_router(catalog_router, prefix="/api/v1")

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {"status": "ok", "service": "course"}

    return app


app = create_app()
