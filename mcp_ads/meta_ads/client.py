from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from facebook_business.adobjects.ad import Ad
from facebook_business.adobjects.adaccount import AdAccount
from facebook_business.adobjects.adset import AdSet
from facebook_business.adobjects.campaign import Campaign
from facebook_business.api import FacebookAdsApi

from ..config import MetaAdsConfig
from ..lazy import LazyClient

log = logging.getLogger("mcp_ads.meta_ads")

DEFAULT_LIST_LIMIT = 25
DEFAULT_DATE_PRESET = "lifetime"

STATUSES = ("ACTIVE", "PAUSED", "DELETED", "ARCHIVED")
DATE_PRESETS = ("today", "yesterday", "this_week", "last_week", "this_month", "last_month", "lifetime")
OBJECT_TYPES = ("campaign", "adset", "ad")

ACCOUNT_FIELDS = [
    "id", "name", "account_status", "currency", "timezone_name",
    "spend_cap", "amount_spent", "balance",
]
CAMPAIGN_FIELDS = [
    "id", "name", "status", "objective", "created_time", "updated_time",
    "start_time", "stop_time", "daily_budget", "lifetime_budget",
    "budget_remaining", "spend_cap",
]
CAMPAIGN_DETAIL_FIELDS = CAMPAIGN_FIELDS + ["bid_strategy", "buying_type", "can_use_spend_cap"]
ADSET_FIELDS = [
    "id", "name", "status", "created_time", "updated_time", "start_time",
    "end_time", "daily_budget", "lifetime_budget", "budget_remaining",
    "bid_amount", "billing_event", "optimization_goal",
]
AD_FIELDS = [
    "id", "name", "status", "created_time", "updated_time", "creative",
    "tracking_specs", "conversion_specs",
]
DEFAULT_INSIGHT_METRICS = [
    "impressions", "clicks", "spend", "reach", "frequency",
    "cpm", "cpc", "ctr", "cost_per_result", "results",
]


def init_api(config: MetaAdsConfig) -> FacebookAdsApi:
    kwargs: Dict[str, Any] = {
        "app_id": config.app_id,
        "app_secret": config.app_secret,
        "access_token": config.access_token,
    }
    if config.api_version:
        kwargs["api_version"] = config.api_version
    api = FacebookAdsApi.init(**kwargs)
    log.info("Meta Ads API initialized (default account=%s)", config.account_id or "-")
    return api


def account_fbid(account_id: str) -> str:
    account_id = account_id.strip()
    if account_id.startswith("act_"):
        account_id = account_id[len("act_"):]
    return f"act_{account_id}"


def _export(obj: Any) -> Dict[str, Any]:
    return obj.export_all_data()


def _take(cursor: Iterable[Any], limit: int) -> List[Dict[str, Any]]:
    # SDK cursors fetch further pages while iterated
    return [_export(o) for o in itertools.islice(cursor, limit)]


def list_params(limit: int, status: Optional[str] = None) -> Dict[str, Any]:
    params: Dict[str, Any] = {"limit": limit}
    if status:
        params["filtering"] = [{"field": "status", "operator": "IN", "value": [status]}]
    return params


def insight_params(date_preset: Optional[str] = None, time_range: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    if date_preset:
        if time_range:
            log.info("datePreset and timeRange both supplied; using datePreset=%s", date_preset)
        return {"date_preset": date_preset}
    if time_range:
        return {"time_range": dict(time_range)}
    return {"date_preset": DEFAULT_DATE_PRESET}


class MetaAdsClient:
    """Narrow read surface over the Facebook Business SDK ad objects."""

    def __init__(self, config: MetaAdsConfig, factory: Optional[Callable[[], Any]] = None):
        self.config = config
        self._handle = LazyClient(factory or (lambda: init_api(config)), name="meta ads api")

    @property
    def api(self):
        return self._handle.get()

    def _account(self, account_id: Optional[str]) -> AdAccount:
        api = self.api
        account_id = account_id or self.config.account_id
        if not account_id:
            raise ValueError("No account ID provided and no default account ID configured")
        return AdAccount(account_fbid(account_id), api=api)

    def get_account_info(self, account_id: Optional[str] = None) -> Dict[str, Any]:
        account = self._account(account_id)
        return _export(account.api_get(fields=ACCOUNT_FIELDS))

    def list_campaigns(self, account_id: Optional[str] = None, limit: int = DEFAULT_LIST_LIMIT,
                       status: Optional[str] = None) -> List[Dict[str, Any]]:
        account = self._account(account_id)
        cursor = account.get_campaigns(fields=CAMPAIGN_FIELDS, params=list_params(limit, status))
        return _take(cursor, limit)

    def get_campaign(self, campaign_id: str) -> Dict[str, Any]:
        campaign = Campaign(campaign_id, api=self.api)
        return _export(campaign.api_get(fields=CAMPAIGN_DETAIL_FIELDS))

    def list_adsets(self, campaign_id: str, limit: int = DEFAULT_LIST_LIMIT,
                    status: Optional[str] = None) -> List[Dict[str, Any]]:
        campaign = Campaign(campaign_id, api=self.api)
        cursor = campaign.get_ad_sets(fields=ADSET_FIELDS, params=list_params(limit, status))
        return _take(cursor, limit)

    def list_ads(self, adset_id: str, limit: int = DEFAULT_LIST_LIMIT,
                 status: Optional[str] = None) -> List[Dict[str, Any]]:
        adset = AdSet(adset_id, api=self.api)
        cursor = adset.get_ads(fields=AD_FIELDS, params=list_params(limit, status))
        return _take(cursor, limit)

    def get_insights(
        self,
        object_id: str,
        object_type: str,
        date_preset: Optional[str] = None,
        time_range: Optional[Dict[str, str]] = None,
        metrics: Optional[List[str]] = None,
    ) -> List[Dict[str, Any]]:
        classes = {"campaign": Campaign, "adset": AdSet, "ad": Ad}
        if object_type not in classes:
            raise ValueError(f"Invalid object type: {object_type}")
        node = classes[object_type](object_id, api=self.api)
        cursor = node.get_insights(fields=list(metrics or DEFAULT_INSIGHT_METRICS),
                                   params=insight_params(date_preset, time_range))
        return [_export(row) for row in cursor]
