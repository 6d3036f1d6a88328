#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import os

from opwire.engine import (
    EndpointCatalog,
    EndpointSpec,
    Engine,
    EngineConfig,
    EventKind,
    Format,
    OAuth2TokenProvider,
    RESTTransport,
)


def build_catalog() -> EndpointCatalog:
    return EndpointCatalog(
        [
            EndpointSpec(
                id="query_devices",
                method="GET",
                path="/devices/queries/devices/v1",
                format=Format(query=("filter", "limit", "offset", "sort")),
                max_page_size=5000,
                detail_operation="get_device_details",
            ),
            EndpointSpec(
                id="get_device_details",
                method="GET",
                path="/devices/entities/devices/v2",
                format=Format(query=("ids",)),
                max_batch_size=100,
                returns_full_detail=True,
            ),
        ]
    )


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Query devices and print their details")
    p.add_argument("filter", nargs="?", default="last_seen:>'last 1 day'")
    p.add_argument("--all", action="store_true", help="Follow pagination")
    p.add_argument("--total", action="store_true", help="Only print the total count")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    config = EngineConfig.from_env()
    credentials = OAuth2TokenProvider(
        config.host,
        os.environ["OPWIRE_CLIENT_ID"],
        os.environ["OPWIRE_CLIENT_SECRET"],
        token_path=config.token_path,
    )
    inputs = {"filter": args.filter, "all": args.all, "total": args.total, "detailed": not args.total}

    async with Engine(
        RESTTransport.from_config(config),
        config=config,
        catalog=build_catalog(),
        credentials=credentials,
    ) as engine:
        print("=" * 65)
        async for event in engine.stream("query_devices", inputs):
            if event.kind is EventKind.TOTAL:
                print(f"Total      : {event.payload}")
            elif event.kind is EventKind.ERROR:
                print(f"Error      : {event.payload}")
            else:
                record = event.payload
                print(f"{record.get('device_id', ''):34} | {record.get('hostname', '')}")
        print("=" * 65)


if __name__ == "__main__":
    asyncio.run(main())
