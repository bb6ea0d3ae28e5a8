"""
FastAPI application - Main entry point

    uvicorn carrier_gateway.api.main:app --host 127.0.0.1 --port 8000
"""

from dotenv import load_dotenv

load_dotenv()

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from carrier_gateway import __version__
from carrier_gateway.api.dependencies import api_key_protection
from carrier_gateway.api.endpoints.carriers import router as carriers_router
from carrier_gateway.api.endpoints.webhooks import router as webhooks_router
from carrier_gateway.error_handler import ErrorHandler
from carrier_gateway.integrations.carriers.errors import CarrierGatewayError
from carrier_gateway.integrations.carriers.gateway import CarrierGateway

# Setup logging
logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

error_handler = ErrorHandler()


def create_app(gateway: Optional[CarrierGateway] = None) -> FastAPI:
    """
    Build the API. When ``gateway`` is given it is used as-is (and left open
    on shutdown); otherwise one is built from the environment at start-up.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if getattr(app.state, "gateway", None) is None:
            owned = CarrierGateway.from_env()
            app.state.gateway = owned
            logger.info("Carrier gateway ready: %s", ", ".join(owned.registry.names()))
        try:
            yield
        finally:
            if owned is not None:
                await owned.aclose()
                app.state.gateway = None

    app = FastAPI(
        title="Carrier Gateway API",
        description="Multi-carrier quote fan-out, policy lifecycle and carrier webhooks",
        version=__version__,
        dependencies=[Depends(api_key_protection)],  # protect everything by default
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(CarrierGatewayError)
    @app.exception_handler(ValueError)
    async def carrier_error_handler(request: Request, exc: Exception):
        status_code, payload = error_handler.handle_exception(exc, context={"path": request.url.path})
        return JSONResponse(status_code=status_code, content=payload)

    @app.get("/health", tags=["Health"])
    async def health():
        current = app.state.gateway
        return {
            "status": "healthy" if current is not None else "starting",
            "version": __version__,
            "carriers": len(current.registry) if current is not None else 0,
        }

    app.include_router(carriers_router, prefix="/api/v1/carriers")
    app.include_router(webhooks_router, prefix="/api/v1/carriers")
    return app


app = create_app()
