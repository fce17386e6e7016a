"""
The Mindful Trader CLI Application.

Command-line interface over a trade export (JSON rows or broker CSV).
"""

from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from mindful_trader.config import settings
from mindful_trader.logging_utils import setup_logging

# Initialize CLI app
app = typer.Typer(
    name="mindful",
    help="The Mindful Trader - performance and psychology analytics for your trade journal",
    add_completion=False,
)

# Sub-command groups
import_app = typer.Typer(help="CSV import commands")
stats_app = typer.Typer(help="Statistics and analytics commands")
config_app = typer.Typer(help="Configuration commands")

app.add_typer(import_app, name="import")
app.add_typer(stats_app, name="stats")
app.add_typer(config_app, name="config")

console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Configure logging before any command runs."""
    setup_logging("DEBUG" if verbose else settings.log_level)


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _load(file: Path) -> list:
    """Load trades or exit with a readable error."""
    from mindful_trader.journal.ingest import load_trades

    try:
        return load_trades(file, tz=settings.timezone)
    except FileNotFoundError:
        _fail(f"File not found: {file}")
    except ValueError as e:
        _fail(f"Could not load trades: {e}")


def _closed(trades: list) -> list:
    return [t for t in trades if t.net_pnl is not None]


def _as_of(value: Optional[str]):
    if value is None:
        return None
    from mindful_trader.journal.models import parse_timestamp

    try:
        return parse_timestamp(value)
    except ValueError:
        _fail(f"Invalid date: {value}")


def _money(value: float) -> str:
    style = "green" if value > 0 else "red" if value < 0 else "white"
    return f"[{style}]${value:+,.2f}[/{style}]"


# ==================== IMPORT COMMANDS ====================


@import_app.command("preview")
def import_preview(
    csv_path: Path = typer.Argument(..., help="Broker CSV export"),
    show_valid: int = typer.Option(10, "--show", "-n", help="Number of valid rows to display"),
):
    """Detect columns and validate a CSV before importing it."""
    from mindful_trader.journal.ingest import (
        auto_detect_column_mapping,
        build_import_preview,
        read_csv,
    )

    try:
        parsed = read_csv(csv_path)
    except FileNotFoundError:
        _fail(f"File not found: {csv_path}")

    if parsed.errors:
        _fail(f"Could not parse CSV: {'; '.join(parsed.errors)}")

    mapping = auto_detect_column_mapping(parsed.headers)

    mapping_table = Table(title="Detected Column Mapping")
    mapping_table.add_column("Field", style="cyan")
    mapping_table.add_column("CSV Column")
    for field_name, column in mapping.items():
        mapping_table.add_row(field_name, column)
    console.print(mapping_table)

    preview = build_import_preview(parsed.rows, mapping, settings.timezone)

    console.print(
        f"\n[bold]{preview.total_rows}[/bold] rows: "
        f"[green]{len(preview.valid_trades)} valid[/green], "
        f"[red]{len(preview.invalid_rows)} invalid[/red]"
    )

    if preview.valid_trades:
        table = Table(title="Valid Trades")
        table.add_column("Ticker", style="cyan")
        table.add_column("Dir")
        table.add_column("Entry", justify="right")
        table.add_column("Exit", justify="right")
        table.add_column("Qty", justify="right")
        for trade in preview.valid_trades[:show_valid]:
            exit_price = trade.get("exit_price")
            table.add_row(
                trade["ticker"],
                trade["direction"],
                f"{trade['entry_price']:.2f}",
                f"{exit_price:.2f}" if exit_price else "-",
                str(trade["quantity"]),
            )
        console.print(table)

    if preview.invalid_rows:
        console.print("\n[yellow]Errors:[/yellow]")
        for row in preview.invalid_rows:
            console.print(f"  - Row {row.row_number}: {', '.join(row.errors)}")


# ==================== STATS COMMANDS ====================


@stats_app.command("summary")
def stats_summary(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
):
    """Show overall performance summary."""
    from mindful_trader.analytics.portfolio import (
        build_equity_curve,
        calculate_max_drawdown,
        calculate_portfolio_metrics,
        calculate_sharpe_ratio,
    )

    trades = _closed(_load(file))
    if not trades:
        console.print("[yellow]No closed trades found[/yellow]")
        return

    m = calculate_portfolio_metrics(trades)
    equity = [p.cumulative_pnl for p in build_equity_curve(trades)]
    max_dd = calculate_max_drawdown(equity)
    sharpe = calculate_sharpe_ratio([t.return_percent or 0 for t in trades])

    pf = "∞" if m.profit_factor == float("inf") else f"{m.profit_factor:.2f}"
    streak = f"{m.current_streak} {'wins' if m.current_streak > 0 else 'losses'}"

    console.print(
        Panel(
            f"Total Trades: {m.total_trades}\n"
            f"Winners: {m.winning_trades} | Losers: {m.losing_trades}\n"
            f"Win Rate: {m.win_rate:.1f}%\n"
            f"\n"
            f"[bold]Total P&L: {_money(m.total_pnl)}[/bold]\n"
            f"Expectancy: {_money(m.expectancy)}\n"
            f"Profit Factor: {pf}\n"
            f"Avg R:R: {m.avg_rr:.2f}\n"
            f"Avg Win: ${m.avg_win:,.2f} | Avg Loss: ${m.avg_loss:,.2f}\n"
            f"Largest Win: ${m.largest_win:,.2f} | Largest Loss: ${m.largest_loss:,.2f}\n"
            f"Current Streak: {streak}\n"
            f"Max Drawdown: {max_dd:.1f}%\n"
            f"Sharpe (per trade): {sharpe:.2f}",
            title="Performance Summary",
            border_style="blue",
        )
    )


@stats_app.command("heatmap")
def stats_heatmap(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
    period: str = typer.Option("hour", "--period", "-p", help="Bucket by 'day' or 'hour'"),
):
    """Show win rate and P&L by weekday (and hour)."""
    from mindful_trader.analytics.time_slots import build_time_heatmap

    trades = _closed(_load(file))
    try:
        cells = build_time_heatmap(trades, granularity=period)
    except ValueError as e:
        _fail(str(e))

    if not cells:
        console.print("[yellow]No closed trades with time data[/yellow]")
        return

    table = Table(title="Time Heatmap")
    table.add_column("Slot", style="cyan")
    table.add_column("Trades", justify="right")
    table.add_column("Win%", justify="right")
    table.add_column("Total P&L", justify="right")
    table.add_column("Avg P&L", justify="right")
    for cell in cells:
        table.add_row(
            cell.label,
            str(cell.trade_count),
            f"{cell.win_rate:.1f}%",
            _money(cell.total_pnl),
            _money(cell.avg_pnl),
        )
    console.print(table)


@stats_app.command("times")
def stats_times(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
    limit: int = typer.Option(None, "--limit", "-l", help="Slots per list"),
    min_trades: int = typer.Option(None, "--min-trades", help="Minimum trades per slot"),
    period: str = typer.Option("hour", "--period", "-p", help="Bucket by 'day' or 'hour'"),
):
    """Show best and worst trading times and times to avoid."""
    from mindful_trader.analytics.time_slots import detect_avoid_patterns, rank_best_worst_times

    trades = _closed(_load(file))
    try:
        ranking = rank_best_worst_times(
            trades,
            granularity=period,
            min_trades=min_trades if min_trades is not None else settings.ranking_min_trades,
            limit=limit if limit is not None else settings.ranking_limit,
        )
        avoid = detect_avoid_patterns(
            trades,
            granularity=period,
            min_trades=settings.avoid_min_trades,
            max_win_rate=settings.avoid_max_win_rate,
        )
    except ValueError as e:
        _fail(str(e))

    if not ranking.best_times:
        console.print("[yellow]Not enough trades per time slot yet[/yellow]")
    for title, slots in (("Best Times", ranking.best_times), ("Worst Times", ranking.worst_times)):
        if not slots:
            continue
        table = Table(title=title)
        table.add_column("Slot", style="cyan")
        table.add_column("Trades", justify="right")
        table.add_column("Win%", justify="right")
        table.add_column("Avg P&L", justify="right")
        for s in slots:
            table.add_row(s.label, str(s.trade_count), f"{s.win_rate:.1f}%", _money(s.avg_pnl))
        console.print(table)

    if avoid:
        console.print("\n[red bold]Times to Avoid:[/red bold]")
        for pattern in avoid:
            console.print(f"  - {pattern.message} ({pattern.trade_count} trades)")


@stats_app.command("market")
def stats_market(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
    group_by: str = typer.Option(
        "both", "--group-by", "-g", help="Group by 'spy_trend', 'sector' or 'both'"
    ),
):
    """Show performance by SPY trend and sector."""
    from mindful_trader.analytics.market import calculate_market_correlation

    trades = _load(file)
    try:
        correlation = calculate_market_correlation(
            trades, group_by=group_by, vocabulary=settings.sector_keywords
        )
    except ValueError as e:
        _fail(str(e))

    def _table(title: str, first_column: str, rows: list) -> Table:
        table = Table(title=title)
        table.add_column(first_column, style="cyan")
        table.add_column("Trades", justify="right")
        table.add_column("Win%", justify="right")
        table.add_column("PF", justify="right")
        table.add_column("Avg P&L", justify="right")
        for name, m in rows:
            table.add_row(
                name,
                str(m.trade_count),
                f"{m.win_rate:.1f}%",
                f"{m.profit_factor:.2f}",
                _money(m.avg_pnl),
            )
        return table

    if group_by in ("spy_trend", "both"):
        console.print(_table("SPY Trend", "Condition", list(correlation.spy_trending.items())))
    if group_by in ("sector", "both"):
        if correlation.sectors:
            console.print(_table("Sectors", "Sector", [(s.sector, s) for s in correlation.sectors]))
        else:
            console.print("[yellow]No sector context journaled yet[/yellow]")

    console.print(
        Panel(
            f"Best SPY condition: [green]{correlation.best_spy_condition}[/green]\n"
            f"Worst SPY condition: [red]{correlation.worst_spy_condition}[/red]\n"
            f"Best sector: [green]{correlation.best_sector}[/green]\n"
            f"Worst sector: [red]{correlation.worst_sector}[/red]",
            title="Market Summary",
            border_style="blue",
        )
    )


@stats_app.command("psychology")
def stats_psychology(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
    period: str = typer.Option("week", "--period", "-p", help="'week', 'month' or 'all'"),
    as_of: str = typer.Option(None, "--as-of", help="End of the period (ISO date, default now)"),
):
    """Show discipline score and emotional patterns."""
    from mindful_trader.analytics.discipline import calculate_psychology_metrics

    trades = _load(file)
    try:
        metrics = calculate_psychology_metrics(trades, period=period, now=_as_of(as_of))
    except ValueError as e:
        _fail(str(e))

    d = metrics.discipline
    if d.total_trades == 0:
        console.print(f"[yellow]No closed trades in this {period}[/yellow]")
        return

    score = f"{d.discipline_score}/100" if d.has_data else "n/a (no journaled trades)"
    console.print(
        Panel(
            f"Period: {metrics.period_start.date()} to {metrics.period_end.date()}\n"
            f"Trades: {d.total_trades} | Journaled: {d.trades_with_journals}\n"
            f"\n"
            f"[bold]Discipline Score: {score}[/bold]\n"
            f"Rule Adherence: {d.rule_adherence_rate:.1f}%\n"
            f"Emotional Volatility: {d.emotional_volatility:.2f}\n"
            f"FOMO Trades: {d.fomo_trade_count} | Revenge Trades: {d.revenge_trade_count}\n"
            f"Most Common Emotion (pre/post): "
            f"{metrics.most_common_pre_trade_emotion or '-'} / "
            f"{metrics.most_common_post_trade_emotion or '-'}\n"
            f"Disciplined Win Rate: {metrics.disciplined_trade_win_rate:.1f}%\n"
            f"FOMO Win Rate: {metrics.fomo_trade_win_rate:.1f}%",
            title="Trading Psychology",
            border_style="magenta",
        )
    )


@stats_app.command("weekly")
def stats_weekly(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
    as_of: str = typer.Option(None, "--as-of", help="Report date (ISO date, default now)"),
):
    """Compare this week with the previous week."""
    from mindful_trader.analytics.discipline import build_weekly_report

    report = build_weekly_report(_load(file), as_of=_as_of(as_of))

    table = Table(title=f"Weekly Report ({report.report_date.date()})")
    table.add_column("Metric", style="cyan")
    table.add_column("This Week", justify="right")
    table.add_column("Last Week", justify="right")
    cur, prev = report.current_week, report.previous_week
    table.add_row("Trades", str(cur.total_trades), str(prev.total_trades))
    table.add_row("Journaled", str(cur.trades_with_journals), str(prev.trades_with_journals))
    table.add_row("Discipline", str(cur.discipline_score), str(prev.discipline_score))
    table.add_row("Win Rate", f"{cur.win_rate:.1f}%", f"{prev.win_rate:.1f}%")
    table.add_row("P&L", _money(cur.total_pnl), _money(prev.total_pnl))
    console.print(table)

    if report.insights:
        console.print("\n[bold]Insights:[/bold]")
        for insight in report.insights:
            console.print(f"  • {insight}")
    console.print(f"\n{report.summary}")


@stats_app.command("strategies")
def stats_strategies(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
):
    """Show strategy performance leaderboard."""
    from mindful_trader.analytics.portfolio import calculate_strategy_breakdown

    stats = calculate_strategy_breakdown(_load(file))
    if not stats:
        console.print("[yellow]No strategy data available yet. Tag some trades first.[/yellow]")
        return

    table = Table(title="Strategy Leaderboard")
    table.add_column("Rank", style="dim")
    table.add_column("Strategy", style="cyan")
    table.add_column("Trades", justify="right")
    table.add_column("Win%", justify="right")
    table.add_column("Total P&L", justify="right")
    table.add_column("Avg R:R", justify="right")
    table.add_column("Discipline", justify="right")
    table.add_column("Top Emotion")
    for i, s in enumerate(stats, 1):
        table.add_row(
            str(i),
            s.strategy_name,
            str(s.trade_count),
            f"{s.win_rate:.0f}%",
            _money(s.total_pnl),
            f"{s.avg_rr:.2f}",
            str(s.discipline_score) if s.journaled_trades else "-",
            s.most_common_emotion or "-",
        )
    console.print(table)


@stats_app.command("progress")
def stats_progress(
    file: Path = typer.Argument(..., help="Trade export (.json or .csv)"),
):
    """Show level, XP and trade milestones."""
    from mindful_trader.analytics.gamification import build_progress

    progress = build_progress(len(_load(file)))
    console.print(
        f"[bold]Level {progress.level}[/bold]  "
        f"XP {progress.xp}/{progress.xp_to_next_level}  "
        f"({progress.total_trades} trades)"
    )
    for milestone in progress.milestones:
        mark = "[green]✓[/green]" if milestone.completed else "[dim]○[/dim]"
        console.print(
            f"  {mark} {milestone.name}: {milestone.current_value}/{milestone.target_value}"
        )


# ==================== CONFIG COMMANDS ====================


@config_app.command("show")
def config_show():
    """Show effective configuration."""
    from mindful_trader.config import get_config_file

    config_file = get_config_file()
    console.print(Panel("[bold]Configuration[/bold]", border_style="blue"))
    source = config_file if config_file.exists() else "(built-in defaults)"
    console.print(f"  Config:        [green]{source}[/green]")
    console.print("  Env vars:      .env")
    console.print(f"  Timezone:      {settings.timezone}")
    console.print(f"  Log level:     {settings.log_level}")
    console.print(
        f"  Avoid times:   >= {settings.avoid_min_trades} trades, "
        f"win rate < {settings.avoid_max_win_rate:.0f}%"
    )
    console.print(
        f"  Best/worst:    >= {settings.ranking_min_trades} trades, top {settings.ranking_limit}"
    )
    console.print(f"  Sectors:       {', '.join(settings.sector_keywords)}")


if __name__ == "__main__":
    app()
