from .client import MetaAdsClient, init_api
from .tools import SERVER_NAME, SERVER_VERSION, build_registry, create_service

__all__ = [
    "MetaAdsClient",
    "init_api",
    "SERVER_NAME",
    "SERVER_VERSION",
    "build_registry",
    "create_service",
]
