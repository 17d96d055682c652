import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from securevet.api.routes.router import api_router
from securevet.core.config import settings
from securevet.core.errors import ClinicError
from securevet.core.firebase import init_firebase
from securevet.core.logging import configure_logging
from securevet.core.rate_limit import limiter, rate_limit_exceeded_handler
from securevet.core.security_headers import SecurityHeadersMiddleware

logger = logging.getLogger(__name__)

app = FastAPI(title="SecureVet Clinic Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# outermost last: throttled responses still get the security headers
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)
app.add_middleware(SecurityHeadersMiddleware)


@app.on_event("startup")
def startup():
    """Configure logging and initialize Firebase Admin at app startup."""
    configure_logging()
    init_firebase()


@app.exception_handler(ClinicError)
async def clinic_error_handler(request: Request, exc: ClinicError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
        detail = "Server error"
    else:
        detail = exc.message
    return JSONResponse(status_code=exc.status_code, content={"detail": detail, "code": exc.code})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "message": e.get("msg")}
        for e in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"detail": "Invalid request", "code": "validation_error", "errors": errors},
    )


@app.get("/")
async def root():
    return {"message": "SecureVet backend is running"}


@app.get("/health")
async def health_check():
    return {"status": "ok"}


app.include_router(api_router)
