from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import Field

from ..config import MetaAdsConfig
from ..registry import ToolParams, ToolRegistry
from ..service import Service
from .client import DATE_PRESETS, DEFAULT_LIST_LIMIT, OBJECT_TYPES, STATUSES, MetaAdsClient

SERVER_NAME = "meta-ads-mcp-server"
SERVER_VERSION = "1.0.0"

Status = Literal[STATUSES]  # type: ignore[valid-type]
DatePreset = Literal[DATE_PRESETS]  # type: ignore[valid-type]
ObjectType = Literal[OBJECT_TYPES]  # type: ignore[valid-type]


class AccountParams(ToolParams):
    account_id: Optional[str] = Field(None, alias="accountId", max_length=64,
                                      description="Account ID (uses default if not provided)")


class ListCampaignsParams(AccountParams):
    limit: int = Field(DEFAULT_LIST_LIMIT, ge=1, le=1000,
                       description=f"Maximum number of campaigns to return (default: {DEFAULT_LIST_LIMIT})")
    status: Optional[Status] = Field(None, description="Filter by campaign status")


class CampaignParams(ToolParams):
    campaign_id: str = Field(alias="campaignId", min_length=1, description="The campaign ID to get details for")


class ListAdSetsParams(ToolParams):
    campaign_id: str = Field(alias="campaignId", min_length=1, description="The campaign ID to list ad sets for")
    limit: int = Field(DEFAULT_LIST_LIMIT, ge=1, le=1000,
                       description=f"Maximum number of ad sets to return (default: {DEFAULT_LIST_LIMIT})")
    status: Optional[Status] = Field(None, description="Filter by ad set status")


class ListAdsParams(ToolParams):
    adset_id: str = Field(alias="adSetId", min_length=1, description="The ad set ID to list ads for")
    limit: int = Field(DEFAULT_LIST_LIMIT, ge=1, le=1000,
                       description=f"Maximum number of ads to return (default: {DEFAULT_LIST_LIMIT})")
    status: Optional[Status] = Field(None, description="Filter by ad status")


class TimeRange(ToolParams):
    since: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="Start date (YYYY-MM-DD)")
    until: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="End date (YYYY-MM-DD)")


class InsightsParams(ToolParams):
    object_id: str = Field(alias="objectId", min_length=1,
                           description="The ID of the campaign, ad set, or ad to get insights for")
    object_type: ObjectType = Field(alias="objectType", description="The type of object to get insights for")
    date_preset: Optional[DatePreset] = Field(None, alias="datePreset", description="Date preset for the insights")
    time_range: Optional[TimeRange] = Field(None, alias="timeRange",
                                            description="Custom date range (alternative to datePreset)")
    metrics: Optional[List[str]] = Field(None, min_length=1, description="Specific metrics to retrieve")


def build_registry(client: MetaAdsClient) -> ToolRegistry:
    registry = ToolRegistry()

    @registry.tool("get_account_info", "Get information about the Meta Ads account", AccountParams)
    def get_account_info(params: AccountParams):
        return client.get_account_info(params.account_id)

    @registry.tool("list_campaigns", "List campaigns in the Meta Ads account", ListCampaignsParams)
    def list_campaigns(params: ListCampaignsParams):
        return client.list_campaigns(params.account_id, limit=params.limit, status=params.status)

    @registry.tool("get_campaign", "Get detailed information about a specific campaign", CampaignParams)
    def get_campaign(params: CampaignParams):
        return client.get_campaign(params.campaign_id)

    @registry.tool("list_adsets", "List ad sets for a campaign", ListAdSetsParams)
    def list_adsets(params: ListAdSetsParams):
        return client.list_adsets(params.campaign_id, limit=params.limit, status=params.status)

    @registry.tool("list_ads", "List ads for an ad set", ListAdsParams)
    def list_ads(params: ListAdsParams):
        return client.list_ads(params.adset_id, limit=params.limit, status=params.status)

    @registry.tool("get_insights", "Get performance insights for campaigns, ad sets, or ads", InsightsParams)
    def get_insights(params: InsightsParams):
        return client.get_insights(
            params.object_id,
            params.object_type,
            date_preset=params.date_preset,
            time_range=params.time_range.model_dump() if params.time_range else None,
            metrics=params.metrics,
        )

    return registry


def create_service(config: MetaAdsConfig, client: Optional[MetaAdsClient] = None) -> Service:
    client = client or MetaAdsClient(config)
    return Service(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        description="MCP server for Meta Ads (Facebook Ads) API operations",
        registry=build_registry(client),
    )
