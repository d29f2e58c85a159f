import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from treasurywatch.api.treasury import router as treasury_router
from treasurywatch.container import Container
from treasurywatch.exceptions import AuthenticationError, TreasuryWatchError, ValidationError

logger = logging.getLogger("treasurywatch.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    if container.settings().debug:
        logging.getLogger("treasurywatch").setLevel(logging.DEBUG)
    app.state.container = container
    yield
    await container.http_client().close()


app = FastAPI(title="Treasury Watch", version="0.1.0", lifespan=lifespan)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(AuthenticationError)
async def auth_error_handler(request: Request, exc: AuthenticationError):
    return JSONResponse(status_code=401, content={"detail": str(exc)})


@app.exception_handler(TreasuryWatchError)
async def upstream_error_handler(request: Request, exc: TreasuryWatchError):
    logger.warning("Upstream failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(treasury_router)
