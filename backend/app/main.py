import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.router import api_router
from app.core import logging as _logging  # Initialize logging
from app.core.settings import API_PREFIX, SERVICE_NAME, build_engine_config
from app.services.interactions.config import set_config
from app.services.interactions.engine import get_engine, shutdown_engine
from app.services.interactions.errors import ValidationError

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Drug Interaction Engine API",
    description="Drug-drug interaction checks and pharmacogenomic alternative resolution",
    version="1.0.0"
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API Routers
app.include_router(api_router, prefix=API_PREFIX)


@app.exception_handler(ValidationError)
async def engine_validation_error_handler(request: Request, exc: ValidationError):
    logger.info(f"Rejected request: {exc}", extra={"path": request.url.path, "code": exc.code.value})
    return JSONResponse(status_code=400, content={"error": exc.message, "code": exc.code.value})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else error.get("msg", "Invalid request"))
    return JSONResponse(status_code=400, content={"error": "; ".join(messages) or "Invalid request"})


@app.on_event("startup")
async def startup_event():
    # Build the engine from process configuration before the first request
    set_config(build_engine_config())
    engine = get_engine()
    logger.info(
        f"{SERVICE_NAME} ready",
        extra={"max_drugs": engine.config.max_drugs, "sources": [a.name for a in engine.adapters]},
    )


@app.on_event("shutdown")
async def shutdown_event():
    await shutdown_engine()


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": SERVICE_NAME}
