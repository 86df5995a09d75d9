"""CoinSight — application entry point.

Boots the FastAPI service that serves indicator snapshots to the dashboard
and provides the CLI entry point.
"""

import logging

from fastapi import FastAPI

from coinsight.api.routers import router

app = FastAPI(title="CoinSight Analytics API", version="0.1.0")
app.include_router(router)

logger = logging.getLogger("coinsight")


@app.get("/health")
async def health():
    """Liveness check."""
    return {"status": "ok"}


# ── CLI ──────────────────────────────────────────────────────────────────


def _run_cli() -> None:
    """Parse CLI arguments, wire dependencies and start uvicorn."""
    import argparse

    import uvicorn

    from coinsight.api.routers import configure_routers
    from coinsight.config import load_config
    from coinsight.market.cache import CandleCache
    from coinsight.market.coingecko_client import CoinGeckoClient

    parser = argparse.ArgumentParser(description="CoinSight analytics API")
    parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, default=None, help="Port (default: API_PORT or 8080)")
    args = parser.parse_args()

    config = load_config()

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    configure_routers(
        market_client=CoinGeckoClient(config),
        candle_cache=CandleCache(ttl_seconds=config.candle_cache_ttl_seconds),
    )

    port = args.port or config.api_port
    logger.info("Starting CoinSight on %s:%d (feed: %s)", args.host, port, config.coingecko_base_url)
    uvicorn.run(app, host=args.host, port=port, log_level="info")


if __name__ == "__main__":
    _run_cli()
