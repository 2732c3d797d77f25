from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from timing_asgi import TimingMiddleware, TimingClient  # type: ignore
from timing_asgi.integrations import StarletteScopeToName  # type: ignore

from rbac_compiler.core import config
from rbac_compiler.core.errors import (
    CardinalityError,
    ConfigValidationError,
    PolicyError,
    ReferentialError,
    RoleLookupError,
)
from rbac_compiler.core.limiter import limiter
from rbac_compiler.features.policy.routes import router as policy_router
from rbac_compiler.features.roles.routes import router as role_router
from rbac_compiler.features.service_principals.routes import router as service_principal_router
from rbac_compiler.utils import get_logger


log = get_logger(__name__)
log.info("Initializing server")
app = FastAPI(
    title="RBAC Compiler",
    description="Resolves declarative multi-tenant RBAC policy into groups, memberships and role assignments",
    version="0.1.0",
    docs_url="/docs" if config.ENABLE_DOCS else None,
    redoc_url="/redoc" if config.ENABLE_DOCS else None,
    openapi_url="/openapi.json" if config.ENABLE_DOCS else None
)
app.state.limiter = limiter


class PrintTimings(TimingClient):
    def timing(self, metric_name, timing, tags):
        log.debug(dict(route=metric_name.removeprefix("main.rbac_compiler.features."), timing=timing, tags=tags))


app.add_middleware(TimingMiddleware, client=PrintTimings(), metric_namer=StarletteScopeToName("main", app))

if config.ENABLE_DOCS:
    log.warning("Docs enabled")
if config.ALLOW_ORIGIN:
    log.warning("Setting allow origin to %s", config.ALLOW_ORIGIN)
    origins = [config.ALLOW_ORIGIN]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


ERROR_STATUS = {
    ConfigValidationError: 400,
    RoleLookupError: 404,
    ReferentialError: 422,
    CardinalityError: 500,
}


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_request: Request, exc: RequestValidationError):
    errors = dict()
    for error in exc.errors():
        if "loc" not in error or "msg" not in error:
            continue
        key = error["loc"][-1]
        if key == "__root__":
            key = "root"
        errors[key] = error["msg"]
    log.info("Request validation error %s", errors)
    return JSONResponse(status_code=400, content=jsonable_encoder(errors))


@app.exception_handler(PolicyError)
async def policy_exception_handler(_request: Request, exc: PolicyError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        400,
    )
    log.info("Policy resolution failed: %s", exc)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(exc.to_dict()))


@app.exception_handler(RateLimitExceeded)
def rate_limit_exceeded_handler(_request: Request, _exc: RateLimitExceeded) -> Response:
    return JSONResponse({"error": "You are going too fast"}, status_code=429)


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": "RBAC Compiler API",
        "version": "0.1.0",
        "status": "online",
        "docs": "/docs" if config.ENABLE_DOCS else None,
        "features": {
            "policy": "Resolve a policy configuration into groups, memberships and single-role assignments",
            "roles": "Built-in role tables by environment and resource type",
            "service_principals": "Credential rotation for resolved service principals",
        }
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}


# Policy resolution routes
app.include_router(policy_router, prefix="/policy", tags=["policy"])

# Role table routes
app.include_router(role_router, prefix="/roles", tags=["roles"])

# Service principal routes
app.include_router(service_principal_router, prefix="/service-principals", tags=["service-principals"])
