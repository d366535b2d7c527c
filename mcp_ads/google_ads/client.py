from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from google.ads.googleads.client import GoogleAdsClient
from google.ads.googleads.errors import GoogleAdsException

from ..config import GoogleAdsConfig
from ..errors import VendorError, describe_error
from ..lazy import LazyClient

log = logging.getLogger("mcp_ads.google_ads")

DEFAULT_CAMPAIGN_LIMIT = 50
DEFAULT_PERFORMANCE_LIMIT = 50
DEFAULT_QUERY_LIMIT = 100
DEFAULT_DATE_RANGE = "LAST_7_DAYS"

# Predefined ranges accepted by GAQL "segments.date DURING ..."
DATE_RANGES = (
    "TODAY", "YESTERDAY",
    "LAST_7_DAYS", "LAST_14_DAYS", "LAST_30_DAYS",
    "LAST_BUSINESS_WEEK", "LAST_WEEK_SUN_SAT", "LAST_WEEK_MON_SUN",
    "THIS_WEEK_SUN_TODAY", "THIS_WEEK_MON_TODAY",
    "THIS_MONTH", "LAST_MONTH",
)


def new_ads_client(config: GoogleAdsConfig) -> GoogleAdsClient:
    cfg = {
        "developer_token": config.developer_token,
        "client_id": config.client_id,
        "client_secret": config.client_secret,
        "refresh_token": config.refresh_token,
        "use_proto_plus": True,
    }
    if config.login_customer_id:
        cfg["login_customer_id"] = config.login_customer_id
    log.info("GoogleAds login_customer_id in use: %r", cfg.get("login_customer_id", ""))
    return GoogleAdsClient.load_from_dict(cfg)


def _ads_call(fn: Callable[[], Any]) -> Any:
    """Run one Google Ads request, turning GoogleAdsException into VendorError."""
    try:
        return fn()
    except GoogleAdsException as e:
        error = getattr(e, "error", None)
        status = error.code().name if error is not None and hasattr(error, "code") else "UNKNOWN"
        failure = getattr(e, "failure", None)
        details: Dict[str, Any] = {
            "status": status,
            "request_id": getattr(e, "request_id", None),
            "errors": [{"message": err.message, "code": err.error_code.__class__.__name__}
                       for err in (failure.errors or [])] if failure is not None else [],
        }
        if status == "PERMISSION_DENIED":
            details["hint"] = ("Set GOOGLE_ADS_LOGIN_CUSTOMER_ID to the manager (MCC) account "
                               "that owns this customer.")
        raise VendorError(describe_error(e), details) from e


def _money(micros: Optional[Any]) -> float:
    return round(int(micros or 0) / 1_000_000, 6)


def _row_to_dict(row: Any) -> Dict[str, Any]:
    return type(row).to_dict(row, use_integers_for_enums=False)


def normalize_customer_id(value: Optional[str]) -> str:
    return (value or "").replace("-", "").strip()


def apply_limit(query: str, limit: int) -> str:
    """Append a LIMIT clause unless the text already mentions one.

    Plain substring check: a "limit" inside a string literal or a field name
    also counts as present.
    """
    final = query.strip()
    if "limit" not in final.lower():
        final += f" LIMIT {limit}"
    return final


def date_clause(date_range: Optional[str] = None, time_range: Optional[Dict[str, str]] = None) -> str:
    if date_range:
        if time_range:
            log.info("dateRange and timeRange both supplied; using dateRange=%s", date_range)
        return f"segments.date DURING {date_range}"
    if time_range and time_range.get("since") and time_range.get("until"):
        return f"segments.date BETWEEN '{time_range['since']}' AND '{time_range['until']}'"
    return f"segments.date DURING {DEFAULT_DATE_RANGE}"


class GoogleAdsApi:
    """Narrow read surface over ``GoogleAdsClient`` (GAQL search + customer listing)."""

    def __init__(self, config: GoogleAdsConfig, factory: Optional[Callable[[], Any]] = None):
        self.config = config
        self._handle = LazyClient(factory or (lambda: new_ads_client(config)), name="google ads client")

    @property
    def client(self):
        return self._handle.get()

    def _customer(self, customer_id: Optional[str]) -> str:
        cid = normalize_customer_id(customer_id) or self.config.customer_id
        if not cid:
            raise ValueError("Customer ID is required. Provide customerId or set GOOGLE_ADS_CUSTOMER_ID.")
        return cid

    def search(self, customer_id: Optional[str], query: str) -> List[Dict[str, Any]]:
        cid = self._customer(customer_id)
        svc = self.client.get_service("GoogleAdsService")
        req = {"customer_id": cid, "query": query}
        rows: Iterable[Any] = _ads_call(lambda: svc.search(request=req))
        return [_row_to_dict(r) for r in rows]

    def list_customers(self) -> Dict[str, Any]:
        svc = self.client.get_service("CustomerService")
        response = _ads_call(lambda: svc.list_accessible_customers())
        customers = []
        for resource_name in response.resource_names:
            customers.append({"resource_name": resource_name, "customer_id": resource_name.split("/")[-1]})
        return {"count": len(customers), "customers": customers}

    def get_customer_info(self, customer_id: Optional[str] = None) -> List[Dict[str, Any]]:
        q = """
            SELECT
              customer.id,
              customer.descriptive_name,
              customer.currency_code,
              customer.time_zone,
              customer.tracking_url_template,
              customer.auto_tagging_enabled,
              customer.has_partners_badge,
              customer.manager,
              customer.test_account
            FROM customer
            LIMIT 1"""
        return self.search(customer_id, q)

    def list_campaigns(self, customer_id: Optional[str] = None, limit: int = DEFAULT_CAMPAIGN_LIMIT) -> List[Dict[str, Any]]:
        q = f"""
            SELECT
              campaign.id,
              campaign.name,
              campaign.status,
              campaign.advertising_channel_type,
              campaign.start_date,
              campaign.end_date,
              campaign.serving_status
            FROM campaign
            ORDER BY campaign.name
            LIMIT {int(limit)}"""
        return self.search(customer_id, q)

    def get_campaign_performance(
        self,
        customer_id: Optional[str] = None,
        campaign_ids: Optional[List[str]] = None,
        date_range: Optional[str] = None,
        time_range: Optional[Dict[str, str]] = None,
    ) -> List[Dict[str, Any]]:
        where = [date_clause(date_range, time_range)]
        ids = [normalize_customer_id(c) for c in (campaign_ids or []) if normalize_customer_id(c)]
        if ids:
            where.insert(0, f"campaign.id IN ({','.join(ids)})")
        q = f"""
            SELECT
              campaign.id,
              campaign.name,
              campaign.status,
              metrics.impressions,
              metrics.clicks,
              metrics.ctr,
              metrics.average_cpc,
              metrics.cost_micros,
              metrics.conversions,
              metrics.conversions_from_interactions_rate,
              metrics.cost_per_conversion,
              segments.date
            FROM campaign
            WHERE {' AND '.join(where)}
            ORDER BY metrics.cost_micros DESC
            LIMIT {DEFAULT_PERFORMANCE_LIMIT}"""
        rows = self.search(customer_id, q)
        for row in rows:
            m = row.get("metrics")
            if isinstance(m, dict) and "cost_micros" in m:
                m["cost"] = _money(m["cost_micros"])
        return rows

    def execute_gaql_query(self, query: str, customer_id: Optional[str] = None, limit: int = DEFAULT_QUERY_LIMIT) -> List[Dict[str, Any]]:
        return self.search(customer_id, apply_limit(query, limit))
