"""
Entry point for a one-shot opportunity scan.

Usage:
    python -m dexarb
    dexarb  # if installed via pip
"""

import asyncio
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 on configuration or fatal error).
    """
    from dexarb import __version__
    from dexarb.config.settings import get_settings
    from dexarb.core.engine import MonitorEngine
    from dexarb.telemetry.logger import setup_logging
    from dexarb.telemetry.reporter import OpportunityReporter

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     DEX ARBITRAGE MONITOR v{__version__:<29}      ║
║                                                               ║
║     Cross-venue price scanner                                 ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}")
        print("\nSettings are read from environment variables or a .env file, e.g.:")
        print("  COINMARKETCAP_API_KEY=your_api_key   (optional)")
        print("  DEFAULT_TOKEN_LIMIT=10")
        return 1

    use_uvloop = UVLOOP_AVAILABLE and settings.use_uvloop
    if use_uvloop:
        uvloop.install()

    print("Configuration:")
    print(f"  Tokens scanned:  {settings.default_token_limit}")
    print(f"  Investment:      {settings.default_investment:,.2f} USD")
    print(f"  Fee per leg:     {settings.fee_rate * 100:.3f}%")
    print(f"  Min profit:      {settings.min_profit_pct:.3f}%")
    print(f"  Cache TTL:       {settings.cache_ttl_seconds:.0f}s")
    print(f"  CoinMarketCap:   {'Enabled' if settings.has_coinmarketcap_key else 'Disabled'}")
    print(f"  uvloop:          {'Enabled' if use_uvloop else 'Disabled'}")
    print()

    async_logger = setup_logging(settings.log_level, settings.log_file)

    async def run_scan() -> int:
        engine = MonitorEngine(settings)
        try:
            engine.setup()
            opportunities = await engine.refresh()
            reporter = OpportunityReporter(metrics=engine.metrics)
            reporter.display(opportunities, settings.default_investment)
            return 0

        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 0

        except Exception as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            await engine.shutdown()

    try:
        return asyncio.run(run_scan())
    finally:
        async_logger.stop()


if __name__ == "__main__":
    sys.exit(main())
