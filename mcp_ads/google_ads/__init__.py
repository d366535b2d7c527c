from .client import GoogleAdsApi, apply_limit, new_ads_client
from .tools import SERVER_NAME, SERVER_VERSION, build_registry, create_service

__all__ = [
    "GoogleAdsApi",
    "apply_limit",
    "new_ads_client",
    "SERVER_NAME",
    "SERVER_VERSION",
    "build_registry",
    "create_service",
]
