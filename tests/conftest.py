# Ensure project root is importable
import asyncio
import pathlib
import sys
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from mcp_ads.config import BigQueryConfig, GoogleAdsConfig, MetaAdsConfig  # noqa: E402


def rpc(dispatcher, method: str, params: Any = None, _id: Any = 1) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"jsonrpc": "2.0", "id": _id, "method": method}
    if params is not None:
        payload["params"] = params
    return asyncio.run(dispatcher.handle(payload))


def call_tool(dispatcher, name: str, arguments: Any = None, _id: Any = 1) -> Dict[str, Any]:
    params: Dict[str, Any] = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return rpc(dispatcher, "tools/call", params, _id)


# ---------- BigQuery fakes ----------
class FakeRowIterator(list):
    @property
    def total_rows(self):
        return len(self)


class FakeQueryJob:
    def __init__(self, job_id: str, rows: List[Dict[str, Any]], calls: List[Any]):
        self.job_id = job_id
        self.state = "DONE"
        self.total_bytes_processed = 1024
        self.cache_hit = False
        self._rows = rows
        self._calls = calls

    def result(self, max_results=None):
        self._calls.append(("result", self.job_id, max_results))
        rows = self._rows[:max_results] if max_results else self._rows
        return FakeRowIterator(SimpleNamespace(items=(lambda r=r: list(r.items()))) for r in rows)


class FakeBigQuery:
    """Stands in for google.cloud.bigquery.Client; records every call."""

    def __init__(self, datasets=None, rows=None):
        self.calls: List[Any] = []
        self.datasets = datasets if datasets is not None else []
        self.rows = rows if rows is not None else []

    def list_datasets(self):
        self.calls.append(("list_datasets",))
        return [SimpleNamespace(dataset_id=d["id"], reference=d["id"]) for d in self.datasets]

    def get_dataset(self, ref):
        self.calls.append(("get_dataset", ref))
        d = next(d for d in self.datasets if d["id"] == ref)
        return SimpleNamespace(
            dataset_id=d["id"],
            friendly_name=d.get("friendlyName"),
            description=d.get("description"),
            location=d.get("location", "US"),
            created=None,
            modified=None,
        )

    def list_tables(self, dataset_id):
        self.calls.append(("list_tables", dataset_id))
        return [SimpleNamespace(table_id="events", friendly_name=None, table_type="TABLE",
                                created=None, expires=None, labels={"env": "prod"})]

    def get_table(self, ref):
        self.calls.append(("get_table", ref))
        field = SimpleNamespace(to_api_repr=lambda: {"name": "id", "type": "INTEGER", "mode": "REQUIRED"})
        return SimpleNamespace(table_id=ref.split(".")[-1], friendly_name=None, description="d",
                               table_type="TABLE", schema=[field], num_rows=3, num_bytes=30,
                               created=None, modified=None, location="US")

    def query(self, query, job_config=None, location=None):
        self.calls.append(("query", query, job_config, location))
        return FakeQueryJob("job_1", self.rows, self.calls)

    def get_job(self, job_id, location=None):
        self.calls.append(("get_job", job_id, location))
        return FakeQueryJob(job_id, self.rows, self.calls)

    def vendor_calls(self):
        return [c for c in self.calls]


# ---------- Google Ads fakes ----------
class FakeAdsRow:
    def __init__(self, data: Dict[str, Any]):
        self.data = data

    @classmethod
    def to_dict(cls, instance, **_kwargs):
        return instance.data


class FakeGoogleAdsService:
    def __init__(self, rows, requests):
        self._rows = rows
        self.requests = requests

    def search(self, request):
        self.requests.append(request)
        return [FakeAdsRow(r) for r in self._rows]


class FakeCustomerService:
    def __init__(self, requests):
        self.requests = requests

    def list_accessible_customers(self):
        self.requests.append("list_accessible_customers")
        return SimpleNamespace(resource_names=["customers/1234567890", "customers/555"])


class FakeAdsClient:
    def __init__(self, rows=None):
        self.rows = rows if rows is not None else []
        self.requests: List[Any] = []

    def get_service(self, name):
        if name == "GoogleAdsService":
            return FakeGoogleAdsService(self.rows, self.requests)
        if name == "CustomerService":
            return FakeCustomerService(self.requests)
        raise AssertionError(f"unexpected service {name}")


# ---------- Meta Ads fakes ----------
class FakeExportable(dict):
    def export_all_data(self):
        return dict(self)


class FakeNode:
    """Replaces AdAccount/Campaign/AdSet/Ad; every SDK call lands in ``calls``."""

    calls: List[Any] = []
    kind = "node"
    items = 3

    def __init__(self, fbid, api=None):
        self.fbid = fbid
        self.api = api

    def _record(self, op, **kwargs):
        FakeNode.calls.append((self.kind, self.fbid, op, kwargs))

    def _cursor(self, n):
        return iter([FakeExportable(id=str(i)) for i in range(n)])

    def api_get(self, fields=None, params=None):
        self._record("api_get", fields=fields)
        return FakeExportable(id=self.fbid, fields=list(fields or []))

    def get_campaigns(self, fields=None, params=None):
        self._record("get_campaigns", fields=fields, params=params)
        return self._cursor(FakeNode.items)

    def get_ad_sets(self, fields=None, params=None):
        self._record("get_ad_sets", fields=fields, params=params)
        return self._cursor(FakeNode.items)

    def get_ads(self, fields=None, params=None):
        self._record("get_ads", fields=fields, params=params)
        return self._cursor(FakeNode.items)

    def get_insights(self, fields=None, params=None):
        self._record("get_insights", fields=fields, params=params)
        return self._cursor(1)


def _node(kind):
    return type(f"Fake{kind}", (FakeNode,), {"kind": kind})


# ---------- fixtures ----------
@pytest.fixture
def bq_config():
    return BigQueryConfig(project_id="proj-1", location="US")


@pytest.fixture
def fake_bq():
    return FakeBigQuery(
        datasets=[
            {"id": "analytics", "friendlyName": "Analytics", "description": "events"},
            {"id": "marketing", "friendlyName": "Marketing"},
        ],
        rows=[{"n": 1}, {"n": 2}],
    )


@pytest.fixture
def bq_dispatcher(bq_config, fake_bq):
    from mcp_ads.bigquery import BigQueryClient, create_service
    return create_service(bq_config, client=BigQueryClient(bq_config, factory=lambda: fake_bq)).dispatcher()


@pytest.fixture
def ads_config():
    return GoogleAdsConfig(developer_token="dev", client_id="cid", client_secret="sec",
                           refresh_token="ref", customer_id="1112223333")


@pytest.fixture
def fake_ads():
    return FakeAdsClient(rows=[
        {"campaign": {"id": "1", "name": "Brand"}, "metrics": {"cost_micros": "2500000", "clicks": "4"}},
    ])


@pytest.fixture
def ads_dispatcher(ads_config, fake_ads):
    from mcp_ads.google_ads import GoogleAdsApi, create_service
    return create_service(ads_config, api=GoogleAdsApi(ads_config, factory=lambda: fake_ads)).dispatcher()


@pytest.fixture
def meta_config():
    return MetaAdsConfig(access_token="tok", app_id="app", app_secret="sec", account_id="42")


@pytest.fixture
def meta_calls(monkeypatch):
    from mcp_ads.meta_ads import client as meta_client

    FakeNode.calls = []
    FakeNode.items = 3
    monkeypatch.setattr(meta_client, "AdAccount", _node("account"))
    monkeypatch.setattr(meta_client, "Campaign", _node("campaign"))
    monkeypatch.setattr(meta_client, "AdSet", _node("adset"))
    monkeypatch.setattr(meta_client, "Ad", _node("ad"))
    return FakeNode.calls


@pytest.fixture
def meta_dispatcher(meta_config, meta_calls):
    from mcp_ads.meta_ads import MetaAdsClient, create_service
    client = MetaAdsClient(meta_config, factory=lambda: "fake-api")
    return create_service(meta_config, client=client).dispatcher()
