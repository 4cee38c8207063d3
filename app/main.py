import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import API_PREFIX
from .exceptions import ConferenceCentralError
from .logging_config import setup_logging
from .routers import conferences, profiles, registrations

setup_logging()
logger = structlog.get_logger()

app = FastAPI(
    title="Conference Central API",
    version="1.0.0",
    description="Backend for conference listings, attendee registration and user profiles",
    docs_url="/docs",
    redoc_url="/redoc",
)

# Configure CORS for docs UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, specify exact origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConferenceCentralError)
async def conference_central_error_handler(
    request: Request, exc: ConferenceCentralError
) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        status_code=exc.status_code,
        error_code=exc.error_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error_code": exc.error_code, "message": exc.message},
    )


# Include routers
app.include_router(profiles.router, prefix=API_PREFIX)
app.include_router(conferences.router, prefix=API_PREFIX)
app.include_router(registrations.router, prefix=API_PREFIX)


@app.get("/")
def read_root():
    return {"message": "Conference Central API", "status": "running"}
