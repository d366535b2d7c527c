from __future__ import annotations

from typing import Annotated, List, Literal, Optional

from pydantic import Field, StringConstraints

from ..config import GoogleAdsConfig
from ..registry import ToolParams, ToolRegistry
from ..service import Service
from .client import DATE_RANGES, DEFAULT_CAMPAIGN_LIMIT, DEFAULT_QUERY_LIMIT, GoogleAdsApi

SERVER_NAME = "google-ads-mcp-server"
SERVER_VERSION = "1.0.0"

DateRange = Literal[DATE_RANGES]  # type: ignore[valid-type]
CampaignId = Annotated[str, StringConstraints(pattern=r"^\d+$")]


class TimeRange(ToolParams):
    since: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="Start date (YYYY-MM-DD)")
    until: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$", description="End date (YYYY-MM-DD)")


class ListCustomersParams(ToolParams):
    pass


class CustomerParams(ToolParams):
    customer_id: Optional[str] = Field(
        None, alias="customerId", max_length=20, pattern=r"^[0-9-]*$",
        description="Customer ID, digits or dashes (defaults to GOOGLE_ADS_CUSTOMER_ID)",
    )


class ListCampaignsParams(CustomerParams):
    limit: int = Field(DEFAULT_CAMPAIGN_LIMIT, ge=1, le=10000,
                       description=f"Maximum number of campaigns to return (default: {DEFAULT_CAMPAIGN_LIMIT})")


class CampaignPerformanceParams(CustomerParams):
    campaign_ids: Optional[List[CampaignId]] = Field(None, alias="campaignIds", max_length=200,
                                              description="List of campaign IDs (optional)")
    date_range: Optional[DateRange] = Field(None, alias="dateRange",
                                            description="Predefined date range, e.g. LAST_7_DAYS (default) or LAST_30_DAYS")
    time_range: Optional[TimeRange] = Field(None, alias="timeRange",
                                            description="Custom date range (alternative to dateRange)")


class GaqlQueryParams(CustomerParams):
    query: str = Field(min_length=1, description="The GAQL query to execute")
    limit: int = Field(DEFAULT_QUERY_LIMIT, ge=1, le=10000,
                       description=f"Maximum number of results when the query has no LIMIT (default: {DEFAULT_QUERY_LIMIT})")


def build_registry(api: GoogleAdsApi) -> ToolRegistry:
    registry = ToolRegistry()

    @registry.tool("list_customers", "List all accessible Google Ads customers", ListCustomersParams)
    def list_customers(_params: ListCustomersParams):
        return api.list_customers()

    @registry.tool("get_customer_info", "Get detailed information about a specific customer", CustomerParams)
    def get_customer_info(params: CustomerParams):
        return api.get_customer_info(params.customer_id)

    @registry.tool("list_campaigns", "List all campaigns for a customer", ListCampaignsParams)
    def list_campaigns(params: ListCampaignsParams):
        return api.list_campaigns(params.customer_id, limit=params.limit)

    @registry.tool("get_campaign_performance", "Get performance metrics for campaigns", CampaignPerformanceParams)
    def get_campaign_performance(params: CampaignPerformanceParams):
        return api.get_campaign_performance(
            params.customer_id,
            campaign_ids=params.campaign_ids,
            date_range=params.date_range,
            time_range=params.time_range.model_dump() if params.time_range else None,
        )

    @registry.tool("execute_gaql_query", "Execute a Google Ads Query Language (GAQL) query", GaqlQueryParams)
    def execute_gaql_query(params: GaqlQueryParams):
        return api.execute_gaql_query(params.query, customer_id=params.customer_id, limit=params.limit)

    return registry


def create_service(config: GoogleAdsConfig, api: Optional[GoogleAdsApi] = None) -> Service:
    api = api or GoogleAdsApi(config)
    return Service(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        description="MCP server for Google Ads customers, campaigns and GAQL queries",
        registry=build_registry(api),
    )
