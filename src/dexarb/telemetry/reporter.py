"""
CLI reporter for opportunity scans.

Renders a box-drawn table of ranked opportunities followed by a short
summary of upstream traffic.
"""

import sys
from collections.abc import Sequence
from typing import TextIO

from dexarb import __version__
from dexarb.core.types import ArbitrageOpportunity
from dexarb.telemetry.metrics import (
    CACHE_HITS,
    FALLBACK_USED,
    UPSTREAM_REQUESTS,
    MetricsCollector,
)
from dexarb.utils.time import format_duration


class OpportunityReporter:
    """
    Box-drawn opportunity table for terminal output.

    Columns: token, buy venue, sell venue, profit USD, profit %, data
    provenance (LIVE or SYNTH).
    """

    BOX_TL = "\u2554"  # ╔
    BOX_TR = "\u2557"  # ╗
    BOX_BL = "\u255a"  # ╚
    BOX_BR = "\u255d"  # ╝
    BOX_H = "\u2550"  # ═
    BOX_V = "\u2551"  # ║
    BOX_LT = "\u2560"  # ╠
    BOX_RT = "\u2563"  # ╣
    THIN_V = "\u2502"  # │

    # (header, width, right-aligned)
    COLUMNS: tuple[tuple[str, int, bool], ...] = (
        ("TOKEN", 8, False),
        ("BUY ON", 12, False),
        ("SELL ON", 12, False),
        ("PROFIT USD", 11, True),
        ("PROFIT %", 9, True),
        ("DATA", 5, False),
    )

    def __init__(
        self,
        metrics: MetricsCollector | None = None,
        output: TextIO | None = None,
    ) -> None:
        """
        Initialize reporter.

        Args:
            metrics: Optional metrics collector for the summary footer.
            output: Output stream (default: stdout).
        """
        self._metrics = metrics
        self._output = output or sys.stdout
        # Inner width: columns plus a separator and a space on each side
        self._width = sum(w for _, w, _ in self.COLUMNS) + 3 * len(self.COLUMNS) + 1

    def _pad(self, text: str, width: int, right: bool = False) -> str:
        """Pad or truncate text to width."""
        text = text[:width]
        return text.rjust(width) if right else text.ljust(width)

    def _line(self, content: str) -> str:
        """Wrap content in vertical borders."""
        return f"{self.BOX_V}{self._pad(content, self._width)}{self.BOX_V}"

    def _divider(self) -> str:
        return f"{self.BOX_LT}{self.BOX_H * self._width}{self.BOX_RT}"

    def _row(self, cells: Sequence[str]) -> str:
        parts = [
            self._pad(cell, width, right)
            for cell, (_, width, right) in zip(cells, self.COLUMNS)
        ]
        return self._line(" " + f" {self.THIN_V} ".join(parts))

    def _format_row(self, opp: ArbitrageOpportunity) -> list[str]:
        token = opp.token.display_symbol if opp.token is not None else "?"
        return [
            token,
            opp.source_venue.venue.value,
            opp.target_venue.venue.value,
            f"{opp.profit_absolute:,.2f}",
            f"{opp.profit_percentage:.3f}",
            "SYNTH" if opp.synthetic else "LIVE",
        ]

    def render(
        self,
        opportunities: Sequence[ArbitrageOpportunity],
        investment_amount: float,
    ) -> str:
        """
        Render the opportunity table.

        Args:
            opportunities: Ranked opportunities.
            investment_amount: Notional amount the profits were computed for.

        Returns:
            Multi-line table string.
        """
        lines = [f"{self.BOX_TL}{self.BOX_H * self._width}{self.BOX_TR}"]
        header = (
            f"  DEX ARBITRAGE MONITOR v{__version__} | "
            f"investment {investment_amount:,.2f} USD"
        )
        lines.append(self._line(header))
        lines.append(self._divider())
        lines.append(self._row([name for name, _, _ in self.COLUMNS]))
        lines.append(self._divider())

        if not opportunities:
            lines.append(self._line("  No profitable opportunities found"))
        for opp in opportunities:
            lines.append(self._row(self._format_row(opp)))

        if self._metrics is not None:
            lines.append(self._divider())
            lines.append(self._line(f"  {self.status_line()}"))

        lines.append(f"{self.BOX_BL}{self.BOX_H * self._width}{self.BOX_BR}")
        return "\n".join(lines)

    def status_line(self) -> str:
        """Single-line summary of upstream traffic."""
        if self._metrics is None:
            return ""
        failures = sum(self._metrics.source_failures().values())
        return (
            f"Requests: {self._metrics.get_counter(UPSTREAM_REQUESTS)} | "
            f"Failures: {failures} | "
            f"Cache hits: {self._metrics.get_counter(CACHE_HITS)} | "
            f"Fallbacks: {self._metrics.get_counter(FALLBACK_USED)} | "
            f"Up: {format_duration(self._metrics.uptime_seconds)}"
        )

    def display(
        self,
        opportunities: Sequence[ArbitrageOpportunity],
        investment_amount: float,
    ) -> None:
        """Write the table to the output stream."""
        self._output.write(self.render(opportunities, investment_amount))
        self._output.write("\n")
        self._output.flush()
