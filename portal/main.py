import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from portal.config import get_settings
from portal.controllers.health import router as health_router
from portal.controllers.participant import router as participant_router
from portal.controllers.session import router as session_router
from portal.controllers.staff import router as staff_router
from portal.controllers.volunteer import router as volunteer_router
from portal.errors import register_exception_handlers
from portal.lifespan import cleanup_resources, setup_resources
from portal.middleware import HTTPLogMiddleware

settings = get_settings()

app = FastAPI(title="Community Activity Portal API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("portal.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)

register_exception_handlers(app)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await setup_resources()
    try:
        yield
    finally:
        await cleanup_resources(resources)


app.router.lifespan_context = lifespan

app.include_router(health_router)
app.include_router(session_router)
app.include_router(participant_router)
app.include_router(volunteer_router)
app.include_router(staff_router)
