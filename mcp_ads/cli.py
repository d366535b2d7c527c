from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Callable, Dict, List, Optional

from dotenv import load_dotenv

from .config import BigQueryConfig, GoogleAdsConfig, MetaAdsConfig
from .errors import ConfigError
from .service import Service

log = logging.getLogger("mcp_ads")

DEFAULT_PORT = 3000


def configure_logging(level: Optional[str] = None) -> None:
    # stderr only: stdout carries the stdio transport
    logging.basicConfig(
        level=(level or os.getenv("MCP_LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _bigquery(args: argparse.Namespace) -> Service:
    from .bigquery import create_service
    return create_service(BigQueryConfig.from_env(key_filename=args.credentials))


def _google_ads(_args: argparse.Namespace) -> Service:
    from .google_ads import create_service
    return create_service(GoogleAdsConfig.from_env())


def _meta_ads(_args: argparse.Namespace) -> Service:
    from .meta_ads import create_service
    return create_service(MetaAdsConfig.from_env())


SERVICES: Dict[str, Callable[[argparse.Namespace], Service]] = {
    "bigquery": _bigquery,
    "google-ads": _google_ads,
    "meta-ads": _meta_ads,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mcp-ads", description="Run an MCP tool server for an ads/analytics API.")
    parser.add_argument("service", choices=sorted(SERVICES), help="which backend to expose")
    parser.add_argument("--transport", choices=["stdio", "http"], default="stdio")
    parser.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.getenv("PORT", str(DEFAULT_PORT))))
    parser.add_argument("--credentials", metavar="FILE", default=None,
                        help="BigQuery service account JSON (overrides GOOGLE_APPLICATION_CREDENTIALS)")
    parser.add_argument("--log-level", default=None)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    configure_logging(args.log_level)

    try:
        service = SERVICES[args.service](args)
    except ConfigError as e:
        log.error("Failed to start %s: %s", args.service, e)
        return 1

    if args.transport == "http":
        import uvicorn

        from .transports.http import create_app

        log.info("Starting %s in HTTP mode on port %d (MCP endpoint /mcp, health /health)", service.name, args.port)
        uvicorn.run(create_app(service), host=args.host, port=args.port)
    else:
        from .transports.stdio import run_stdio

        run_stdio(service)
    return 0


def _service_main(service: str) -> Callable[[], int]:
    def run() -> int:
        return main([service, *sys.argv[1:]])
    return run


bigquery_main = _service_main("bigquery")
google_ads_main = _service_main("google-ads")
meta_ads_main = _service_main("meta-ads")


if __name__ == "__main__":
    sys.exit(main())
