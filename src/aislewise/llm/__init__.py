"""Text generation clients."""

from .client import HttpModelClient, MissingCredentialsError, build_model_client
from .interface import ModelClient, StaticModelClient, UpstreamTransportError

__all__ = [
    "HttpModelClient",
    "MissingCredentialsError",
    "ModelClient",
    "StaticModelClient",
    "UpstreamTransportError",
    "build_model_client",
]
