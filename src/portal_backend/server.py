import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from portal_backend.api.exceptions import error_code_for
from portal_backend.api.permissions import permissions_router
from portal_backend.api.resolve import resolve_router
from portal_backend.directory import build_directory
from portal_backend.interface.envelope import ApiEnvelope
from portal_backend.permissions.aggregator import PermissionAggregator
from portal_backend.permissions.summary import PermissionSummaryService
from portal_backend.resolution.facade import ResolutionFacade
from portal_backend.resolution.resolver import PathResolver
from portal_backend.settings import settings

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    directory = await build_directory(settings)
    aggregator = PermissionAggregator(directory)

    app.state.directory = directory
    app.state.facade = ResolutionFacade(PathResolver(directory), aggregator)
    app.state.summary = PermissionSummaryService(directory, aggregator)

    logger.info(f"Portal backend started ({settings.DEBUG_MODE})")

    yield

    await directory.close()

app = FastAPI(lifespan=lifespan)

if settings.ENABLE_CORS:
    origins = [
        "*"
    ]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(StarletteHTTPException)
async def envelope_exception_handler(request: Request, exc: StarletteHTTPException):
    envelope = ApiEnvelope.fail(error_code_for(exc), str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=envelope.model_dump(mode="json"), headers=exc.headers)


app.include_router(
    resolve_router,
    prefix="/resolve",
    tags=["resolve"],
)

app.include_router(
    permissions_router,
    prefix="/permissions",
    tags=["permissions"],
)

@app.get("/", include_in_schema=False)
def get_status_head():
    return {"status": "ok"}
