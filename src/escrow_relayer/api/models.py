from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class RelayRequest(BaseModel):
    """Request model for forwarding a signed escrow action.

    Fields are optional here so that missing values reach the gateway and
    are reported as 400 with the missing field names.
    """

    action: str | None = Field(None, description="deposit, release, dispute or refund")
    params: dict[str, Any] | None = Field(
        None,
        description="Action parameters: from, escrowAddress and buyer/amount or tradeId",
    )
    nonce: int | str | None = Field(None, description="Signer's current metaNonces value")
    deadline: int | str | None = Field(None, description="Unix timestamp the signature expires at")
    signature: str | None = Field(None, description="EIP-712 signature (0x...)")


class RelayResponse(BaseModel):
    """Response model for an accepted relay transaction."""

    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="txHash", description="Hash of the submitted transaction")


class DripRequest(BaseModel):
    """Request model for a first-time gas drip."""

    address: str | None = Field(None, description="Address to fund")


class DripResponse(BaseModel):
    """Response model for a successful drip."""

    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="txHash", description="Hash of the funding transfer")
    amount: str = Field(..., description="Amount sent, in ETH, as a decimal string")


class HealthResponse(BaseModel):
    status: str
    relayer: str | None = Field(None, description="Relayer address once the key is loaded")
