"""
Per-service configuration resolved from the environment.

Each config is built once at process start and is read-only afterwards.
Required values that are absent raise ``ConfigError`` naming every missing
environment variable, so the process refuses to start.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Literal, Mapping, Optional, Tuple

from pydantic import BaseModel, ValidationError

from .errors import ConfigError

log = logging.getLogger("mcp_ads.config")

DEFAULT_BQ_LOCATION = "US"


def _env(environ: Mapping[str, str], *names: str) -> str:
    """First non-empty value among ``names`` (stripped), or ''."""
    for name in names:
        value = (environ.get(name) or "").strip()
        if value:
            return value
    return ""


def _require(pairs: Iterable[Tuple[str, str]]) -> None:
    missing = [name for name, value in pairs if not value]
    if missing:
        raise ConfigError(f"Missing required env: {', '.join(missing)}")


def _digits(value: str) -> str:
    return (value or "").replace("-", "").strip()


class ServiceAccountKey(BaseModel):
    """The parts of a service-account key file we rely on."""

    type: Literal["service_account"]
    project_id: str
    client_email: str
    private_key_id: str = ""
    private_key: str = ""
    client_id: str = ""
    token_uri: str = ""


def read_service_account(path: str) -> ServiceAccountKey:
    with open(path, "r", encoding="utf-8") as fh:
        return ServiceAccountKey.model_validate(json.load(fh))


@dataclass(frozen=True)
class BigQueryConfig:
    project_id: str
    location: str = DEFAULT_BQ_LOCATION
    key_filename: Optional[str] = None

    @classmethod
    def from_env(
        cls,
        key_filename: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "BigQueryConfig":
        env = os.environ if environ is None else environ
        key_file = key_filename or _env(env, "GOOGLE_APPLICATION_CREDENTIALS") or None
        location = _env(env, "BQ_LOCATION", "GOOGLE_CLOUD_LOCATION") or DEFAULT_BQ_LOCATION

        project_id = ""
        if key_file:
            if not os.path.isfile(key_file):
                raise ConfigError(f"Service account file '{key_file}' not found")
            try:
                project_id = read_service_account(key_file).project_id
                log.info("Using project ID from service account: %s", project_id)
            except (OSError, ValueError, ValidationError) as exc:
                log.warning("Could not read project ID from service account file %s: %s", key_file, exc)

        if not project_id:
            project_id = _env(env, "GOOGLE_CLOUD_PROJECT", "BQ_PROJECT_ID", "GCLOUD_PROJECT")
            if project_id:
                log.info("Using project ID from environment: %s", project_id)

        if not project_id:
            raise ConfigError(
                "Project ID is required. Either:\n"
                "1. Pass a service account file with --credentials, or\n"
                "2. Set GOOGLE_APPLICATION_CREDENTIALS environment variable, or\n"
                "3. Set GOOGLE_CLOUD_PROJECT or BQ_PROJECT_ID environment variable"
            )
        return cls(project_id=project_id, location=location, key_filename=key_file)


@dataclass(frozen=True)
class GoogleAdsConfig:
    developer_token: str
    client_id: str
    client_secret: str
    refresh_token: str
    customer_id: str
    login_customer_id: str = ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "GoogleAdsConfig":
        env = os.environ if environ is None else environ
        dev_token = _env(env, "GOOGLE_ADS_DEVELOPER_TOKEN")
        client_id = _env(env, "GOOGLE_ADS_CLIENT_ID")
        client_secret = _env(env, "GOOGLE_ADS_CLIENT_SECRET")
        refresh_token = _env(env, "GOOGLE_ADS_REFRESH_TOKEN")
        customer_id = _digits(_env(env, "GOOGLE_ADS_CUSTOMER_ID"))
        _require([
            ("GOOGLE_ADS_DEVELOPER_TOKEN", dev_token),
            ("GOOGLE_ADS_CLIENT_ID",       client_id),
            ("GOOGLE_ADS_CLIENT_SECRET",   client_secret),
            ("GOOGLE_ADS_REFRESH_TOKEN",   refresh_token),
            ("GOOGLE_ADS_CUSTOMER_ID",     customer_id),
        ])
        return cls(
            developer_token=dev_token,
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=refresh_token,
            customer_id=customer_id,
            login_customer_id=_digits(_env(env, "GOOGLE_ADS_LOGIN_CUSTOMER_ID")),
        )


@dataclass(frozen=True)
class MetaAdsConfig:
    access_token: str
    app_id: str
    app_secret: str
    account_id: str = ""
    api_version: str = ""

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "MetaAdsConfig":
        env = os.environ if environ is None else environ
        access_token = _env(env, "META_ADS_ACCESS_TOKEN")
        app_id = _env(env, "META_ADS_APP_ID")
        app_secret = _env(env, "META_ADS_APP_SECRET")
        _require([
            ("META_ADS_ACCESS_TOKEN", access_token),
            ("META_ADS_APP_ID",       app_id),
            ("META_ADS_APP_SECRET",   app_secret),
        ])
        return cls(
            access_token=access_token,
            app_id=app_id,
            app_secret=app_secret,
            account_id=_env(env, "META_ADS_ACCOUNT_ID"),
            api_version=_env(env, "META_ADS_API_VERSION"),
        )
