"""
Terminal rendering for Kalshi Brackets.

Uses Rich to display distributions, source rows, snapshots and calibration
statistics.
"""

from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich import box

from kalshi_brackets.core import Snapshot, SourceRow, SourceStats, AccuracySummary, TrendPoint
from kalshi_brackets.engine import Distribution, MarketMetrics, argmax_first


def _pct(p: float) -> str:
    return f"{p * 100:.1f}%"


def _temp(value: Optional[float]) -> str:
    if value is None or value != value:
        return "-"
    return f"{value:g}°"


class Display:
    """
    Builds Rich tables for each command and prints them.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def show(self, renderable) -> None:
        self.console.print(renderable)

    def generate_distribution_panel(self, dist: Distribution, title: str) -> Panel:
        """Bracket probabilities with the most likely bracket highlighted."""
        table = Table(box=box.SIMPLE, expand=True)
        table.add_column("Bracket")
        table.add_column("Prob", justify="right")
        if dist.prior_applied:
            table.add_column("Base", justify="right")

        top = argmax_first(dist.probs)
        for i, (bracket, pct) in enumerate(zip(dist.scheme, dist.percentages)):
            cells = [bracket.label, f"{pct:.1f}%"]
            if dist.prior_applied:
                cells.append(_pct(dist.base_probs[i]))
            table.add_row(*cells, style="bold green" if i == top else None)

        table.add_section()
        total = ["[b]Total[/b]", f"[b]{dist.percent_total:.1f}%[/b]"]
        if dist.prior_applied:
            total.append("")
        table.add_row(*total)

        subtitle = f"weights: {dist.weight_mode.value}"
        if dist.prior_applied:
            subtitle += " | prior blended"
        return Panel(table, title=title, subtitle=subtitle, border_style="cyan")

    def generate_adjusted_rows_table(self, dist: Distribution) -> Table:
        """Effective weights and bias-adjusted forecasts per source."""
        table = Table(box=box.SIMPLE, expand=True, title="Sources (effective)")
        table.add_column("Source")
        table.add_column("Forecast", justify="right")
        table.add_column("Bias", justify="right")
        table.add_column("Adjusted", justify="right")
        table.add_column("Weight", justify="right")

        for r in dist.rows:
            bias = dist.biases.get(r.name)
            table.add_row(
                r.source or "[dim](unnamed)[/dim]",
                _temp(r.forecast),
                f"{bias:+.2f}" if bias is not None else "-",
                _temp(r.adj_forecast),
                _pct(r.n_weight),
            )
        return table

    def generate_rows_table(self, rows: Sequence[SourceRow], title: str) -> Table:
        table = Table(box=box.SIMPLE, expand=True, title=title)
        table.add_column("ID", justify="right")
        table.add_column("Source")
        table.add_column("Forecast", justify="right")
        table.add_column("Weight", justify="right")

        for r in rows:
            table.add_row(str(r.id), r.source, _temp(r.forecast), f"{r.weight:g}")
        return table

    def generate_snapshots_table(self, snapshots: Sequence[Snapshot], title: str) -> Table:
        """Saved snapshots, newest first, with their top bracket and outcome."""
        table = Table(box=box.SIMPLE, expand=True, title=title)
        table.add_column("ID")
        table.add_column("Name")
        table.add_column("Mode")
        table.add_column("Top bracket")
        table.add_column("Actual", justify="right")

        for s in snapshots:
            top = argmax_first(s.probs)
            if 0 <= top < len(s.scheme):
                top_text = f"{s.scheme[top].label} ({_pct(s.probs[top])})"
            else:
                top_text = "-"
            table.add_row(s.id, s.name, s.weight_mode.value, top_text, _temp(s.actual))
        return table

    def generate_stats_table(
        self,
        stats: Sequence[SourceStats],
        auto_weights: Optional[Dict[str, float]],
    ) -> Table:
        """Per-source error statistics, best MAE first."""
        table = Table(box=box.SIMPLE, expand=True, title="Source accuracy")
        table.add_column("Source")
        table.add_column("N", justify="right")
        table.add_column("MAE", justify="right")
        table.add_column("≤1°", justify="right")
        table.add_column("≤2°", justify="right")
        table.add_column("≤3°", justify="right")
        table.add_column("Auto wt", justify="right")

        for s in stats:
            weight = (auto_weights or {}).get(s.source)
            table.add_row(
                s.source,
                str(s.n),
                f"{s.mae:.2f}",
                f"{s.p1:.0f}%",
                f"{s.p2:.0f}%",
                f"{s.p3:.0f}%",
                _pct(weight) if weight is not None else "-",
            )
        return table

    def generate_accuracy_panel(self, summary: AccuracySummary, trend: List[TrendPoint]) -> Panel:
        text = Text()
        text.append(f"Top bracket correct: {summary.correct}/{summary.total}", style="bold")
        text.append(f" ({summary.pct:.1f}%)")
        for point in trend:
            text.append(f"\n{point.t}  {point.acc:.1f}%")
        return Panel(text, title="Accuracy", border_style="green")

    def generate_hedge_table(self, metrics: Sequence[MarketMetrics]) -> Table:
        table = Table(box=box.SIMPLE, expand=True, title="Hedge")
        table.add_column("Market")
        table.add_column("YES", justify="right")
        table.add_column("Deposit", justify="right")
        table.add_column("Contracts", justify="right")
        table.add_column("Cost", justify="right")
        table.add_column("Payout", justify="right")
        table.add_column("P/L", justify="right")

        for m in metrics:
            style = "green" if m.profit_loss > 0 else ("red" if m.profit_loss < 0 else None)
            table.add_row(
                m.option.id,
                f"${m.option.yes_price:.2f}",
                f"${m.deposit:.2f}",
                str(m.contracts),
                f"${m.total_cost:.2f}",
                f"${m.min_payout}",
                f"${m.profit_loss:+.2f}",
                style=style,
            )
        return table
