import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from escrow_relayer.api.routes import router
from escrow_relayer.chain import ChainConnection
from escrow_relayer.config import RelayerConfig
from escrow_relayer.drip_gateway import DripGateway
from escrow_relayer.errors import RelayerError
from escrow_relayer.rate_limit import InMemoryRateLimitStore, RateLimitStore
from escrow_relayer.relay_gateway import RelayGateway

logger = logging.getLogger(__name__)


def create_app(
    config: RelayerConfig | None = None,
    chain: ChainConnection | None = None,
    relay_gateway: RelayGateway | None = None,
    drip_gateway: DripGateway | None = None,
    store: RateLimitStore | None = None,
) -> FastAPI:
    """
    Build the HTTP front end for both gateways.

    Both gateways share one ChainConnection; any component passed in is
    used as-is, which is how tests substitute the chain.
    """
    config = config or RelayerConfig.from_env()
    chain = chain or ChainConnection(config)
    relay_gateway = relay_gateway or RelayGateway(chain, config.authorization)
    drip_gateway = drip_gateway or DripGateway(
        chain, config.drip, store if store is not None else InMemoryRateLimitStore()
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        config.log_config()
        logger.info("Escrow relayer ready")
        yield
        logger.info("Escrow relayer stopped")

    app = FastAPI(
        title="Escrow Relayer",
        description="Gas-sponsored relay for signed escrow actions and first-time gas drips",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.config = config
    app.state.chain = chain
    app.state.relay_gateway = relay_gateway
    app.state.drip_gateway = drip_gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.server.cors_origins),
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(router)

    @app.exception_handler(RelayerError)
    async def relayer_error_handler(request: Request, exc: RelayerError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_payload())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"Invalid request body: {location + ' ' if location else ''}{first.get('msg', '')}".strip()
        else:
            message = "Invalid request body"
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    return app
