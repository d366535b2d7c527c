import json
from types import SimpleNamespace

from google.ads.googleads.errors import GoogleAdsException

from conftest import FakeAdsClient, call_tool
from mcp_ads.google_ads import GoogleAdsApi, apply_limit, create_service
from mcp_ads.google_ads.client import date_clause


def _text(response):
    return response["result"]["content"][0]["text"]


def test_apply_limit_appends_when_absent():
    assert apply_limit("  SELECT campaign.id FROM campaign  ", 100) == "SELECT campaign.id FROM campaign LIMIT 100"


def test_apply_limit_leaves_existing_limit():
    q = "SELECT campaign.id FROM campaign limit 5"
    assert apply_limit(q, 100) == q


def test_gaql_query_sent_unmodified_when_limited(ads_dispatcher, fake_ads):
    q = "SELECT campaign.id FROM campaign LIMIT 5"
    call_tool(ads_dispatcher, "execute_gaql_query", {"query": q})
    assert fake_ads.requests[-1] == {"customer_id": "1112223333", "query": q}


def test_gaql_query_gets_default_limit(ads_dispatcher, fake_ads):
    call_tool(ads_dispatcher, "execute_gaql_query", {"query": "SELECT campaign.id FROM campaign",
                                                     "customerId": "444-555-6666"})
    request = fake_ads.requests[-1]
    assert request["customer_id"] == "4445556666"
    assert request["query"].endswith(" LIMIT 100")


def test_list_campaigns_default_limit(ads_dispatcher, fake_ads):
    rows = json.loads(_text(call_tool(ads_dispatcher, "list_campaigns", {})))
    assert rows[0]["campaign"]["name"] == "Brand"
    query = fake_ads.requests[-1]["query"]
    assert "LIMIT 50" in query
    assert "ORDER BY campaign.name" in query


def test_campaign_performance_adds_cost(ads_dispatcher, fake_ads):
    rows = json.loads(_text(call_tool(ads_dispatcher, "get_campaign_performance",
                                      {"campaignIds": ["1", "2"], "dateRange": "LAST_30_DAYS"})))
    assert rows[0]["metrics"]["cost"] == 2.5
    query = fake_ads.requests[-1]["query"]
    assert "campaign.id IN (1,2)" in query
    assert "segments.date DURING LAST_30_DAYS" in query


def test_date_clause_precedence():
    span = {"since": "2024-01-01", "until": "2024-01-31"}
    assert date_clause("LAST_MONTH", span) == "segments.date DURING LAST_MONTH"
    assert date_clause(None, span) == "segments.date BETWEEN '2024-01-01' AND '2024-01-31'"
    assert date_clause() == "segments.date DURING LAST_7_DAYS"


def test_invalid_date_range_rejected(ads_dispatcher, fake_ads):
    response = call_tool(ads_dispatcher, "get_campaign_performance", {"dateRange": "LAST_3_YEARS"})
    assert response["error"]["code"] == -32000
    assert fake_ads.requests == []


def test_list_customers(ads_dispatcher):
    data = json.loads(_text(call_tool(ads_dispatcher, "list_customers")))
    assert data["count"] == 2
    assert data["customers"][0] == {"resource_name": "customers/1234567890", "customer_id": "1234567890"}


def _permission_denied():
    exc = GoogleAdsException.__new__(GoogleAdsException)
    exc.error = SimpleNamespace(code=lambda: SimpleNamespace(name="PERMISSION_DENIED"))
    exc.failure = SimpleNamespace(errors=[
        SimpleNamespace(message="User doesn't have permission to access customer.", error_code=SimpleNamespace()),
    ])
    exc.request_id = "req-1"
    return exc


def test_google_ads_exception_is_reported(ads_config):
    class FailingClient(FakeAdsClient):
        def get_service(self, name):
            def search(request):
                raise _permission_denied()
            return SimpleNamespace(search=search)

    dispatcher = create_service(ads_config, api=GoogleAdsApi(ads_config, factory=FailingClient)).dispatcher()
    response = call_tool(dispatcher, "get_customer_info", {})
    error = response["error"]
    assert error["code"] == -32000
    assert error["message"] == "User doesn't have permission to access customer."
    assert error["data"]["status"] == "PERMISSION_DENIED"
    assert error["data"]["request_id"] == "req-1"
    assert "GOOGLE_ADS_LOGIN_CUSTOMER_ID" in error["data"]["hint"]


def test_campaign_ids_must_be_numeric(ads_dispatcher, fake_ads):
    response = call_tool(ads_dispatcher, "get_campaign_performance",
                         {"campaignIds": ["1) OR (1=1"]})
    assert response["error"]["code"] == -32000
    assert response["error"]["message"].startswith("Invalid params: campaignIds.0")
    assert fake_ads.requests == []
