from .client import BigQueryClient, new_bigquery_client
from .tools import SERVER_NAME, SERVER_VERSION, build_registry, create_service

__all__ = [
    "BigQueryClient",
    "new_bigquery_client",
    "SERVER_NAME",
    "SERVER_VERSION",
    "build_registry",
    "create_service",
]
