from typing import List
import argparse
import asyncio
import json
import logging
import os
from logging.config import dictConfig

import sentry_sdk

from social.graze.avatars.config import load_settings
from social.graze.avatars.errors import DiscoveryError
from social.graze.avatars.metrics import create_metrics_client
from social.graze.avatars.resolve.federation import FederationResolver

logger = logging.getLogger(__name__)


def configure_logging():
    logging_config_file = os.getenv("LOGGING_CONFIG_FILE", "")

    if len(logging_config_file) > 0:
        with open(logging_config_file) as fl:
            dictConfig(json.load(fl))
        return

    logging.basicConfig()
    logging.getLogger().setLevel(logging.DEBUG)


async def realMain(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="avatars-resolve", description="Resolve federated avatar services"
    )
    parser.add_argument("domain", nargs="+", help="The domain(s) to resolve.")
    parser.add_argument(
        "--https",
        action="store_true",
        default=None,
        help="Resolve the secure (avatars-sec) service.",
    )
    parser.add_argument(
        "--fallback-host",
        default=None,
        help="Override the fallback host for the selected protocol.",
    )

    args = vars(parser.parse_args(argv))

    overrides = {}
    if args.get("https"):
        overrides["use_https"] = True
    settings = load_settings(**overrides)

    # USE_HTTPS may come from the environment, so pick the field after loading.
    if args.get("fallback_host"):
        key = "secure_fallback_host" if settings.use_https else "fallback_host"
        overrides[key] = args["fallback_host"]
        settings = load_settings(**overrides)

    if settings.sentry_dsn is not None:
        sentry_sdk.init(dsn=settings.sentry_dsn)

    metrics_client = create_metrics_client(
        settings.metrics_backend,
        host=settings.statsd_host,
        port=settings.statsd_port,
        debug=settings.debug,
    )
    await metrics_client.connect()
    resolver = FederationResolver(settings=settings, metrics_client=metrics_client)
    protocol_class = resolver.default_protocol_class

    domains: List[str] = args.get("domain", [])
    failures = 0
    try:
        for domain in domains:
            try:
                base_url = await resolver.resolve(domain, protocol_class)
                print(f"{domain} {base_url}")
            except DiscoveryError:
                failures += 1
                logging.exception("Exception resolving domain %s", domain)
    finally:
        await metrics_client.close()
    return 1 if failures else 0


def main() -> None:
    configure_logging()
    raise SystemExit(asyncio.run(realMain()))


if __name__ == "__main__":
    main()
