import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, HTTPException, Request, Response

from escrow_relayer.api.models import (
    DripRequest,
    DripResponse,
    HealthResponse,
    RelayRequest,
    RelayResponse,
)
from escrow_relayer.drip_gateway import DripGateway
from escrow_relayer.errors import RequestTimeoutError
from escrow_relayer.relay_gateway import RelayGateway

router = APIRouter(tags=["Relayer"])

T = TypeVar("T")


def get_relay_gateway(request: Request) -> RelayGateway:
    """Retrieve the RelayGateway from app state."""
    gateway = getattr(request.app.state, "relay_gateway", None)
    if not gateway:
        raise HTTPException(status_code=500, detail="relay gateway not initialized")
    return gateway


def get_drip_gateway(request: Request) -> DripGateway:
    """Retrieve the DripGateway from app state."""
    gateway = getattr(request.app.state, "drip_gateway", None)
    if not gateway:
        raise HTTPException(status_code=500, detail="drip gateway not initialized")
    return gateway


async def run_with_deadline(request: Request, call: Awaitable[T]) -> T:
    """Await a gateway call, cancelling it once the request timeout passes."""
    timeout = request.app.state.config.chain.request_timeout
    try:
        return await asyncio.wait_for(call, timeout=timeout)
    except asyncio.TimeoutError:
        raise RequestTimeoutError(f"Request timed out after {timeout}s") from None


@router.post("/relay", response_model=RelayResponse)
@router.post("/api/relay", response_model=RelayResponse, include_in_schema=False)
async def relay(request: Request, req: RelayRequest):
    """
    Forward a signed escrow action.

    The relayer pays gas; the escrow contract verifies the signature, nonce
    and deadline. Returns as soon as the node accepts the transaction.
    """
    gateway = get_relay_gateway(request)
    result = await run_with_deadline(request, gateway.handle_payload(req.model_dump()))
    return RelayResponse(tx_hash=result.tx_hash)


@router.post("/drip", response_model=DripResponse)
@router.post("/api/drip", response_model=DripResponse, include_in_schema=False)
async def drip(request: Request, req: DripRequest):
    """
    Send a one-time gas allowance to a new address.
    """
    gateway = get_drip_gateway(request)
    result = await run_with_deadline(request, gateway.handle(req.address))
    return DripResponse(tx_hash=result.tx_hash, amount=result.amount)


@router.options("/relay", include_in_schema=False)
@router.options("/api/relay", include_in_schema=False)
@router.options("/drip", include_in_schema=False)
@router.options("/api/drip", include_in_schema=False)
async def preflight():
    return Response(status_code=200)


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Liveness check; does not touch the chain."""
    chain = getattr(request.app.state, "chain", None)
    return HealthResponse(status="ok", relayer=chain.relayer_address if chain else None)
