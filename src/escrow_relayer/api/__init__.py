"""HTTP surface for the relay and drip gateways."""

from .server import create_app

__all__ = ["create_app"]
