"""CLI entry point for the journal analytics."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import click

from .core.errors import DataError, JournalError


def _load_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise DataError(f"Cannot read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise DataError(f"Invalid JSON in {path}: {exc}") from exc


def _load_trades(path: str, strict: bool) -> list[Any]:
    from .core.models import parse_trade

    payload = _load_json(path)
    if isinstance(payload, dict):
        payload = payload.get("trades")
    if not isinstance(payload, list):
        raise DataError(f"{path}: expected a list of trades or {{\"trades\": [...]}}")
    if strict:
        return [parse_trade(item) for item in payload]
    return payload


def _setup(config: str | None, command: str) -> Any:
    from .core.config import load_settings
    from .observability.logger import get_logger, new_run_id, setup_logging

    settings = load_settings(config)
    setup_logging(settings.observability.log_level, settings.observability.log_format)
    new_run_id()
    get_logger(__name__).info("run_started", command=command, config=config)
    return settings


def _emit(data: Any, indent: int | None) -> None:
    click.echo(json.dumps(data, indent=indent, default=str))


@click.group()
def main() -> None:
    """Trading journal analytics."""


@main.command()
@click.argument("trades_path", metavar="TRADES.json")
@click.option("--config", default=None, help="Config file path (TOML)")
@click.option(
    "--section",
    default=None,
    type=click.Choice(
        ["stats", "tilt", "sessions", "correlation",
         "contextual_zones", "market_conditions", "latest_market",
         "risk_metrics", "equity_curve", "predictions"]
    ),
    help="Print a single report section",
)
@click.option("--strict", is_flag=True, help="Fail on the first invalid trade record")
@click.option("--indent", default=2, type=int, help="JSON indent (0 for compact)")
def report(trades_path: str, config: str | None, section: str | None, strict: bool, indent: int) -> None:
    """Run every analytic over a trade history and print JSON."""
    from .journal.report import build_report

    try:
        settings = _setup(config, "report")
        trades = _load_trades(trades_path, strict)
    except JournalError as exc:
        raise click.ClickException(str(exc)) from exc

    result = build_report(trades, settings)
    _emit(result[section] if section else result, indent or None)


@main.command()
@click.argument("context_path", metavar="CONTEXT.json")
@click.option("--config", default=None, help="Config file path (TOML)")
def score(context_path: str, config: str | None) -> None:
    """Score one market-context snapshot."""
    from .analysis.market_scoring import score_market

    try:
        settings = _setup(config, "score")
        context = _load_json(context_path)
    except JournalError as exc:
        raise click.ClickException(str(exc)) from exc

    if not isinstance(context, dict):
        raise click.ClickException(f"{context_path}: expected a JSON object")
    _emit(score_market(context, settings.market_score), 2)


@main.command()
@click.argument("trades_path", metavar="TRADES.json")
@click.option("--config", default=None, help="Config file path (TOML)")
def tilt(trades_path: str, config: str | None) -> None:
    """Print a one-line tilt summary and any episodes."""
    from .journal.tilt import TiltDetector

    try:
        settings = _setup(config, "tilt")
        trades = _load_trades(trades_path, strict=False)
    except JournalError as exc:
        raise click.ClickException(str(exc)) from exc

    result = TiltDetector(settings.tilt).analyse(trades)
    click.echo(
        f"Tilt score: {result['tilt_score']}  risk: {result['current_risk']}  "
        f"trades: {result['analyzed_trades']}"
    )
    for ep in result["episodes"]:
        click.echo(
            f"  {ep['start_date']} -> {ep['end_date']}  {ep['severity']:<8} "
            f"{ep['trade_count']} trades  pnl {ep['total_pnl']:.2f}  "
            f"[{', '.join(ep['signals'])}]"
        )


if __name__ == "__main__":
    main()
