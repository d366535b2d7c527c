from __future__ import annotations

from typing import Optional

from pydantic import ConfigDict, Field

from ..config import BigQueryConfig
from ..registry import ToolParams, ToolRegistry
from ..service import Service
from .client import DEFAULT_MAX_RESULTS, BigQueryClient

SERVER_NAME = "bigquery-mcp-server"
SERVER_VERSION = "1.0.0"


class ListDatasetsParams(ToolParams):
    model_config = ConfigDict(extra="ignore")


class ListTablesParams(ToolParams):
    dataset_id: str = Field(alias="datasetId", min_length=1, description="The dataset ID to list tables from")


class GetTableSchemaParams(ToolParams):
    dataset_id: str = Field(alias="datasetId", min_length=1, description="The dataset ID containing the table")
    table_id: str = Field(alias="tableId", min_length=1, description="The table ID to get schema for")


class ExecuteQueryParams(ToolParams):
    query: str = Field(min_length=1, description="The SQL query to execute")
    max_results: int = Field(DEFAULT_MAX_RESULTS, alias="maxResults", ge=1, le=10000,
                             description=f"Maximum number of results to return (default: {DEFAULT_MAX_RESULTS})")
    dry_run: bool = Field(False, alias="dryRun",
                          description="If true, only validate the query without executing it")


class GetQueryResultsParams(ToolParams):
    job_id: str = Field(alias="jobId", min_length=1, description="The job ID of the query to get results for")
    max_results: int = Field(DEFAULT_MAX_RESULTS, alias="maxResults", ge=1, le=10000,
                             description=f"Maximum number of results to return (default: {DEFAULT_MAX_RESULTS})")


def build_registry(client: BigQueryClient) -> ToolRegistry:
    registry = ToolRegistry()

    @registry.tool("list_datasets", "List all datasets in the BigQuery project", ListDatasetsParams)
    def list_datasets(_params: ListDatasetsParams):
        return client.list_datasets()

    @registry.tool("list_tables", "List all tables in a specific dataset", ListTablesParams)
    def list_tables(params: ListTablesParams):
        return client.list_tables(params.dataset_id)

    @registry.tool("get_table_schema", "Get the schema of a specific table", GetTableSchemaParams)
    def get_table_schema(params: GetTableSchemaParams):
        return client.get_table_schema(params.dataset_id, params.table_id)

    @registry.tool("execute_query", "Execute a BigQuery SQL query", ExecuteQueryParams)
    def execute_query(params: ExecuteQueryParams):
        return client.execute_query(params.query, max_results=params.max_results, dry_run=params.dry_run)

    @registry.tool("get_query_results", "Get results from a previously executed query job", GetQueryResultsParams)
    def get_query_results(params: GetQueryResultsParams):
        return client.get_query_results(params.job_id, max_results=params.max_results)

    return registry


def create_service(config: BigQueryConfig, client: Optional[BigQueryClient] = None) -> Service:
    client = client or BigQueryClient(config)
    return Service(
        name=SERVER_NAME,
        version=SERVER_VERSION,
        description="MCP server for Google BigQuery datasets, tables and queries",
        registry=build_registry(client),
    )
