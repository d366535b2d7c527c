import json

import pytest

from conftest import call_tool
from mcp_ads.meta_ads.client import account_fbid, insight_params


def _text(response):
    return response["result"]["content"][0]["text"]


def _ops(calls, op):
    return [c for c in calls if c[2] == op]


@pytest.mark.parametrize("raw,expected", [
    ("123", "act_123"),
    ("act_123", "act_123"),
    (" act_act_9 ", "act_act_9"),
])
def test_account_fbid(raw, expected):
    assert account_fbid(raw) == expected


def test_account_info_uses_configured_default(meta_dispatcher, meta_calls):
    info = json.loads(_text(call_tool(meta_dispatcher, "get_account_info", {})))
    assert info["id"] == "act_42"
    call_tool(meta_dispatcher, "get_account_info", {"accountId": "act_77"})
    assert meta_calls[-1][1] == "act_77"


def test_list_campaigns_default_limit(meta_dispatcher, meta_calls):
    campaigns = json.loads(_text(call_tool(meta_dispatcher, "list_campaigns", {})))
    assert len(campaigns) == 3
    (call,) = _ops(meta_calls, "get_campaigns")
    assert call[3]["params"] == {"limit": 25}


def test_list_results_are_capped_at_limit(meta_dispatcher, meta_calls):
    campaigns = json.loads(_text(call_tool(meta_dispatcher, "list_campaigns", {"limit": 2, "status": "ACTIVE"})))
    assert len(campaigns) == 2
    params = _ops(meta_calls, "get_campaigns")[0][3]["params"]
    assert params["filtering"] == [{"field": "status", "operator": "IN", "value": ["ACTIVE"]}]


def test_get_campaign_requires_id(meta_dispatcher, meta_calls):
    response = call_tool(meta_dispatcher, "get_campaign", {})
    assert response["error"]["code"] == -32000
    assert response["error"]["message"] == "Invalid params: campaignId: Field required"
    assert meta_calls == []


def test_adsets_and_ads(meta_dispatcher, meta_calls):
    call_tool(meta_dispatcher, "list_adsets", {"campaignId": "c1"})
    call_tool(meta_dispatcher, "list_ads", {"adSetId": "s1", "limit": 1})
    assert [(c[0], c[1], c[2]) for c in meta_calls] == [
        ("campaign", "c1", "get_ad_sets"),
        ("adset", "s1", "get_ads"),
    ]


def test_insights_default_to_lifetime(meta_dispatcher, meta_calls):
    call_tool(meta_dispatcher, "get_insights", {"objectId": "c1", "objectType": "campaign"})
    (call,) = _ops(meta_calls, "get_insights")
    assert call[0] == "campaign"
    assert call[3]["params"] == {"date_preset": "lifetime"}
    assert "impressions" in call[3]["fields"]


def test_insights_time_range_and_metrics(meta_dispatcher, meta_calls):
    call_tool(meta_dispatcher, "get_insights", {
        "objectId": "a1", "objectType": "ad",
        "timeRange": {"since": "2024-01-01", "until": "2024-01-31"},
        "metrics": ["spend"],
    })
    (call,) = _ops(meta_calls, "get_insights")
    assert call[0] == "ad"
    assert call[3]["params"] == {"time_range": {"since": "2024-01-01", "until": "2024-01-31"}}
    assert call[3]["fields"] == ["spend"]


def test_insights_reject_unknown_object_type(meta_dispatcher, meta_calls):
    response = call_tool(meta_dispatcher, "get_insights", {"objectId": "x", "objectType": "account"})
    assert response["error"]["code"] == -32000
    assert meta_calls == []


def test_preset_wins_over_range():
    span = {"since": "2024-01-01", "until": "2024-01-31"}
    assert insight_params("last_week", span) == {"date_preset": "last_week"}
    assert insight_params() == {"date_preset": "lifetime"}
