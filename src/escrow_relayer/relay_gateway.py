"""
Meta-transaction relay.

Forwards a signed escrow action to the escrow contract's relay entry point,
paying gas from the relayer identity. The relay does not track nonces: the
caller's nonce, deadline and signature are passed through and the contract
decides whether the authorization is valid.
"""

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from .actions import (
    COMMON_PARAMS,
    ActionKind,
    get_spec,
    is_blank,
    to_address,
    to_signature,
    to_uint,
)
from .authorization import build_domain, verify_authorization
from .config import AuthorizationConfig
from .errors import ValidationError
from .models import MetaTxRequest, RelayResult

if TYPE_CHECKING:
    from .chain import ChainConnection

logger = logging.getLogger(__name__)

REQUEST_FIELDS: tuple[str, ...] = ("action", "params", "nonce", "deadline", "signature")


class RelayGateway:
    """Validates and forwards signed escrow actions."""

    def __init__(
        self,
        chain: "ChainConnection",
        authorization: AuthorizationConfig | None = None,
    ) -> None:
        """
        Initialize the RelayGateway.

        Args:
            chain: Shared connection and relayer identity
            authorization: Escrow signing domain and local pre-check switch
        """
        self.chain = chain
        self.authorization = authorization or AuthorizationConfig()

    @staticmethod
    def parse_request(body: Any) -> MetaTxRequest:
        """
        Turn a decoded request body into a MetaTxRequest.

        Raises:
            ValidationError: If a field is missing, malformed or the action
                is unknown
        """
        if not isinstance(body, Mapping):
            raise ValidationError("Missing required fields")

        params = body.get("params")
        if not isinstance(params, Mapping):
            params = {}

        missing = [name for name in REQUEST_FIELDS if is_blank(body.get(name))]
        missing += [f"params.{name}" for name in COMMON_PARAMS if is_blank(params.get(name))]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

        action = ActionKind.parse(body["action"])
        spec = get_spec(action)
        if spec.missing_params(params):
            raise ValidationError(f"{action.value} requires {' and '.join(spec.required)}")

        to_address("escrowAddress", params["escrowAddress"])

        return MetaTxRequest(
            action=action,
            params=dict(params),
            nonce=to_uint("nonce", body["nonce"]),
            deadline=to_uint("deadline", body["deadline"]),
            signature=to_signature(body["signature"]),
        )

    async def handle_payload(self, body: Any) -> RelayResult:
        return await self.handle(self.parse_request(body))

    async def handle(self, request: MetaTxRequest) -> RelayResult:
        """
        Submit one relay transaction for `request`.

        Exactly one submission is attempted; nothing is retried. The call
        returns once the node has accepted the transaction, not when it is
        mined.

        Raises:
            ValidationError: Bad parameters or a failed local pre-check
            ConfigurationError: Relayer identity unavailable
            ChainError: RPC failure or contract revert
        """
        spec = get_spec(request.action)
        missing = [name for name in COMMON_PARAMS if is_blank(request.params.get(name))]
        missing += spec.missing_params(request.params)
        if missing:
            raise ValidationError(f"{request.action.value} requires {' and '.join(missing)}")

        call_args = spec.call_args(
            request.params, request.nonce, request.deadline, request.signature
        )
        sender = call_args[0]
        escrow_address = to_address("escrowAddress", request.params.get("escrowAddress"))

        await self.chain.ensure_identity()

        if self.authorization.verify_signatures:
            domain = build_domain(
                await self.chain.chain_id(),
                escrow_address,
                self.authorization.domain_name,
                self.authorization.domain_version,
            )
            verify_authorization(spec, call_args, domain)

        tx_hash = await self.chain.transact(escrow_address, spec.entry_point, call_args)
        logger.info(f"[relay] {request.action.value} submitted tx={tx_hash} from={sender}")
        return RelayResult(tx_hash=tx_hash, action=request.action, sender=sender)
