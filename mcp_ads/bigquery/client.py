from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from google.cloud import bigquery

from ..config import BigQueryConfig
from ..lazy import LazyClient

log = logging.getLogger("mcp_ads.bigquery")

DEFAULT_MAX_RESULTS = 100


def new_bigquery_client(config: BigQueryConfig) -> bigquery.Client:
    if config.key_filename:
        log.info("BigQuery using service account file %s (project=%s location=%s)",
                 config.key_filename, config.project_id, config.location)
        return bigquery.Client.from_service_account_json(
            config.key_filename, project=config.project_id, location=config.location,
        )
    log.info("BigQuery using default application credentials (project=%s location=%s)",
             config.project_id, config.location)
    return bigquery.Client(project=config.project_id, location=config.location)


def _iso(value: Any) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _row_to_dict(row: Any) -> Dict[str, Any]:
    return dict(row.items())


class BigQueryClient:
    """Narrow read/query surface over ``google.cloud.bigquery.Client``."""

    def __init__(self, config: BigQueryConfig, factory: Optional[Callable[[], Any]] = None):
        self.config = config
        self._handle = LazyClient(factory or (lambda: new_bigquery_client(config)), name="bigquery client")

    @property
    def client(self):
        return self._handle.get()

    def list_datasets(self) -> List[Dict[str, Any]]:
        client = self.client
        out = []
        for item in client.list_datasets():
            ds = client.get_dataset(item.reference)
            out.append({
                "id": ds.dataset_id,
                "friendlyName": ds.friendly_name,
                "description": ds.description,
                "location": ds.location,
                "creationTime": _iso(ds.created),
                "lastModifiedTime": _iso(ds.modified),
            })
        log.info("listed %d datasets project=%s", len(out), self.config.project_id)
        return out

    def list_tables(self, dataset_id: str) -> List[Dict[str, Any]]:
        out = []
        for t in self.client.list_tables(dataset_id):
            out.append({
                "id": t.table_id,
                "friendlyName": t.friendly_name,
                "type": t.table_type,
                "creationTime": _iso(t.created),
                "expirationTime": _iso(t.expires),
                "labels": dict(t.labels or {}),
            })
        return out

    def get_table_schema(self, dataset_id: str, table_id: str) -> Dict[str, Any]:
        table = self.client.get_table(f"{dataset_id}.{table_id}")
        return {
            "tableId": table.table_id,
            "friendlyName": table.friendly_name,
            "description": table.description,
            "type": table.table_type,
            "schema": {"fields": [field.to_api_repr() for field in table.schema]},
            "numRows": table.num_rows,
            "numBytes": table.num_bytes,
            "creationTime": _iso(table.created),
            "lastModifiedTime": _iso(table.modified),
            "location": table.location,
        }

    def _job_result(self, job: Any, max_results: int) -> Dict[str, Any]:
        rows_iter = job.result(max_results=max_results)
        rows = [_row_to_dict(r) for r in rows_iter]
        return {
            "jobId": job.job_id,
            "state": job.state,
            "totalRows": getattr(rows_iter, "total_rows", None),
            "bytesProcessed": job.total_bytes_processed,
            "cacheHit": job.cache_hit,
            "rows": rows,
            "rowCount": len(rows),
        }

    def execute_query(self, query: str, max_results: int = DEFAULT_MAX_RESULTS, dry_run: bool = False) -> Dict[str, Any]:
        # SQL text is sent as-is; the bound applies to the fetched result page.
        job_config = bigquery.QueryJobConfig(dry_run=dry_run, use_query_cache=not dry_run)
        job = self.client.query(query, job_config=job_config, location=self.config.location)
        if dry_run:
            return {
                "dryRun": True,
                "valid": True,
                "totalBytesProcessed": job.total_bytes_processed,
            }
        return self._job_result(job, max_results)

    def get_query_results(self, job_id: str, max_results: int = DEFAULT_MAX_RESULTS) -> Dict[str, Any]:
        job = self.client.get_job(job_id, location=self.config.location)
        return self._job_result(job, max_results)
