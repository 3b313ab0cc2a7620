#!/usr/bin/env python3
"""
btcpulse command line interface.

Usage:
    # Spot price
    btcpulse price --currency EUR

    # Candle window
    btcpulse candles --window 24h --currency GBP --format csv

    # Market metadata (market cap, volume, percent changes)
    btcpulse market --currency JPY

    # Selectable currencies
    btcpulse currencies --remote
"""

import argparse
import asyncio
import csv
import json
import sys
from typing import List, Optional

from .api import BtcPulse
from .models.candle import Candle, TimeWindow, trend_percent
from .models.market import CurrencyInfo, MarketSnapshot
from .utils.config import Config
from .utils.exceptions import BtcPulseError
from .utils.logger import setup_logger


def format_candles_table(candles: List[Candle], currency: str) -> str:
    lines = [
        f"{'Time (UTC)':<20} {'Open':>14} {'High':>14} {'Low':>14} {'Close':>14} {'Volume':>16}",
        "-" * 97,
    ]
    for c in candles:
        lines.append(
            f"{c.time.strftime('%Y-%m-%d %H:%M'):<20} {c.open:>14.2f} {c.high:>14.2f} "
            f"{c.low:>14.2f} {c.close:>14.2f} {c.volume:>16.4f}"
        )
    trend = trend_percent(candles)
    if trend is not None:
        lines.append("")
        lines.append(f"Trend: {trend:+.2f}% ({currency})")
    return "\n".join(lines)


def print_candles(candles: List[Candle], currency: str, output_format: str) -> None:
    if output_format == "json":
        print(json.dumps([c.to_dict() for c in candles], indent=2))
    elif output_format == "csv":
        writer = csv.writer(sys.stdout)
        writer.writerow(["time", "open", "high", "low", "close", "volume"])
        for c in candles:
            writer.writerow([c.time.isoformat(), c.open, c.high, c.low, c.close, c.volume])
    else:
        print(format_candles_table(candles, currency))


def format_market(snapshot: MarketSnapshot) -> str:
    def pct(value: Optional[float]) -> str:
        return "n/a" if value is None else f"{value:+.2f}%"

    return "\n".join([
        f"Price:       {snapshot.price:,.2f} {snapshot.currency}",
        f"Market cap:  {snapshot.market_cap:,.0f} {snapshot.currency}",
        f"Volume 24h:  {snapshot.volume_24h:,.0f} {snapshot.currency}",
        f"Change 1h:   {pct(snapshot.change_1h)}",
        f"Change 24h:  {pct(snapshot.change_24h)}",
        f"Change 7d:   {pct(snapshot.change_7d)}",
    ])


def format_currencies(currencies: List[CurrencyInfo]) -> str:
    return "\n".join(f"{c.code}  {c.name}" for c in currencies)


async def run(args: argparse.Namespace, config: Config) -> None:
    """Execute one command."""
    if args.command == "currencies" and not args.remote:
        print(format_currencies(BtcPulse.list_fx_currencies()))
        return

    async with BtcPulse(config) as pulse:
        if args.command == "price":
            spot = await pulse.get_spot(args.currency)
            print(f"1 {spot.base} = {spot.amount:,.2f} {spot.currency}")
        elif args.command == "candles":
            candles = await pulse.get_candles(args.window, args.currency)
            if not candles:
                print(f"No candle data for {args.window}", file=sys.stderr)
                return
            print_candles(candles, args.currency.upper(), args.format)
        elif args.command == "market":
            snapshot = await pulse.get_market_snapshot(args.currency)
            if args.format == "json":
                print(json.dumps(snapshot.to_dict(), indent=2))
            else:
                print(format_market(snapshot))
        elif args.command == "currencies":
            print(format_currencies(await pulse.get_supported_currencies()))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="btcpulse",
        description="Live Bitcoin price, candles and market data in any currency",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  btcpulse price --currency EUR
  btcpulse candles --window 1y --currency JPY --format json
  btcpulse market --currency GBP
  btcpulse currencies
        """,
    )
    parser.add_argument("--log-level", default=None, help="Logging level (default: LOG_LEVEL or INFO)")
    parser.add_argument("--log-file", default=None, help="Optional log file path")

    subparsers = parser.add_subparsers(dest="command", required=True)

    price = subparsers.add_parser("price", help="Current BTC spot price")
    price.add_argument("--currency", default="USD", help="Currency code (default: USD)")

    candles = subparsers.add_parser("candles", help="Candles for a display window")
    candles.add_argument(
        "--window",
        default=TimeWindow.DAY.value,
        choices=[w.value for w in TimeWindow],
        help="Display window (default: 24h)",
    )
    candles.add_argument("--currency", default="USD", help="Currency code (default: USD)")
    candles.add_argument(
        "--format",
        choices=["table", "csv", "json"],
        default="table",
        help="Output format (default: table)",
    )

    market = subparsers.add_parser("market", help="Market cap, volume and percent changes")
    market.add_argument("--currency", default="USD", help="Currency code (default: USD)")
    market.add_argument("--format", choices=["table", "json"], default="table")

    currencies = subparsers.add_parser("currencies", help="Selectable currencies")
    currencies.add_argument(
        "--remote",
        action="store_true",
        help="Ask Coinbase instead of using the bundled FX currency list",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main function."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = Config.load()
        setup_logger(
            log_level=args.log_level or config.log_level,
            log_file=args.log_file or config.log_file,
        )
        asyncio.run(run(args, config))
    except BtcPulseError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
