"""
DEX Arbitrage Monitor.

An asynchronous price-aggregation engine that resolves token prices from
several public APIs, simulates per-DEX quotes and detects cross-venue
arbitrage opportunities for a browser dashboard.
"""

__version__ = "1.0.0"
__author__ = "Tim"
