"""Command line entry point for the auto-trading core."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import Optional, Sequence

from crypto_autotrader.config import ExchangeCredentials, Settings, load_settings
from crypto_autotrader.data import BinanceRestClient, MarketDataCache, PriceStream
from crypto_autotrader.database import DatabaseManager
from crypto_autotrader.errors import AutoTraderError
from crypto_autotrader.exchanges import BinanceService, create_gateway
from crypto_autotrader.execution import AutoTradingController
from crypto_autotrader.models import Exchange, MarketSnapshot, TradingSignal
from crypto_autotrader.monitoring import configure_logging
from crypto_autotrader.risk import RiskLimits, RiskManager
from crypto_autotrader.utils import bollinger_bands, ema, macd, rsi, sma


logger = logging.getLogger(__name__)


def build_controller(
    settings: Settings,
    credentials: Optional[ExchangeCredentials] = None,
) -> AutoTradingController:
    """Composition root for the execution path."""
    credentials = credentials or ExchangeCredentials.from_env(settings)
    gateway = create_gateway(credentials, order_timeout=settings.order_timeout)
    risk_manager = None
    if settings.enforce_risk_checks:
        risk_manager = RiskManager(RiskLimits(max_risk_pct=settings.max_risk_pct))
    database = None
    if settings.persist_orders:
        settings.ensure_directories()
        database = DatabaseManager(settings.database_url)
    return AutoTradingController(
        gateway,
        risk_manager=risk_manager,
        quote_asset=settings.quote_asset,
        database=database,
    )


def build_market_data(settings: Settings) -> tuple[BinanceRestClient, MarketDataCache]:
    client = BinanceRestClient(settings.market_data_url, timeout=settings.request_timeout)
    return client, MarketDataCache(client, refresh_interval=settings.refresh_interval)


def _print(payload: object) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def run_ticker(settings: Settings, symbol: str) -> None:
    client, cache = build_market_data(settings)
    try:
        snapshot = await cache.fetch(symbol)
        _print(asdict(snapshot))
    finally:
        await client.close()


async def run_price(settings: Settings, symbol: str) -> None:
    client = BinanceRestClient(settings.market_data_url, timeout=settings.request_timeout)
    try:
        _print({'symbol': symbol, 'price': await client.get_price(symbol)})
    finally:
        await client.close()


async def run_klines(settings: Settings, symbol: str, interval: str, limit: int) -> None:
    client, cache = build_market_data(settings)
    try:
        candles = await cache.get_klines(symbol, interval, limit)
    finally:
        await client.close()
    closes = [candle.close for candle in candles]
    if not closes:
        logger.warning('No candles returned for %s %s', symbol, interval)
        return
    _print(
        {
            'symbol': symbol,
            'interval': interval,
            'candles': len(candles),
            'last_close': closes[-1],
            'rsi': rsi(closes),
            'sma20': sma(closes, 20),
            'sma50': sma(closes, 50),
            'ema12': ema(closes, 12),
            'ema26': ema(closes, 26),
            'macd': asdict(macd(closes)),
            'bollinger': asdict(bollinger_bands(closes)),
        }
    )


async def run_watch(settings: Settings, symbols: Sequence[str], duration: float) -> None:
    client, cache = build_market_data(settings)

    def on_update(snapshot: MarketSnapshot) -> None:
        logger.info(
            '%s %.8g (%+.2f%%) vol=%.2f',
            snapshot.symbol,
            snapshot.price,
            snapshot.change_percent,
            snapshot.volume,
        )

    unsubscribers = [cache.subscribe(symbol, on_update) for symbol in symbols]
    try:
        results = await asyncio.gather(*(cache.fetch(symbol) for symbol in symbols), return_exceptions=True)
        for symbol, result in zip(symbols, results):
            if isinstance(result, Exception):
                logger.warning('Initial fetch for %s failed: %s', symbol, result)
        await asyncio.sleep(duration)
    finally:
        for unsubscribe in unsubscribers:
            unsubscribe()
        await cache.close()
        await client.close()


async def run_stream(settings: Settings, symbol: str, duration: float) -> None:
    service = BinanceService(
        ExchangeCredentials(Exchange.BINANCE, testnet=False),
        request_timeout=settings.request_timeout,
    )
    stream = PriceStream(service)
    unsubscribe = stream.subscribe(symbol, lambda price: logger.info('%s %.8g', symbol, price))
    try:
        await asyncio.sleep(duration)
    finally:
        unsubscribe()
        await stream.close()
        await service.close()


async def run_execute(settings: Settings, args: argparse.Namespace) -> None:
    signal = TradingSignal(
        symbol=args.symbol,
        action=args.action,
        price=args.price,
        quantity=args.quantity,
        stop_loss=args.stop_loss,
        take_profit=args.take_profit,
        confidence=args.confidence,
    )
    controller = build_controller(settings)
    controller.enable()
    try:
        order = await controller.execute_signal(signal)
        _print(order.to_dict())
    finally:
        controller.disable()
        await controller.close()


async def run_balance(settings: Settings) -> None:
    controller = build_controller(settings)
    try:
        _print(await controller.get_account_balance())
    finally:
        await controller.close()


async def run_orders(settings: Settings, limit: int) -> None:
    database = DatabaseManager(settings.database_url)
    try:
        orders = await asyncio.to_thread(database.load_orders, limit)
    finally:
        database.close()
    _print([order.to_dict() for order in orders])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Crypto auto-trading CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    ticker = sub.add_parser('ticker', help='Fetch a 24h ticker snapshot')
    ticker.add_argument('symbol')

    price = sub.add_parser('price', help='Fetch the latest trade price')
    price.add_argument('symbol')

    klines = sub.add_parser('klines', help='Fetch candles and print indicator values')
    klines.add_argument('symbol')
    klines.add_argument('--interval', default='1h')
    klines.add_argument('--limit', type=int, default=100)

    watch = sub.add_parser('watch', help='Subscribe to refreshed snapshots')
    watch.add_argument('symbols', nargs='+')
    watch.add_argument('--duration', type=float, default=120.0, help='Runtime in seconds')

    stream = sub.add_parser('stream', help='Print live prices from the ticker websocket')
    stream.add_argument('symbol')
    stream.add_argument('--duration', type=float, default=60.0, help='Runtime in seconds')

    execute = sub.add_parser('execute', help='Execute one trading signal')
    execute.add_argument('symbol')
    execute.add_argument('action', choices=['buy', 'sell', 'hold'])
    execute.add_argument('--price', type=float, required=True)
    execute.add_argument('--quantity', type=float, default=0.0)
    execute.add_argument('--stop-loss', type=float, default=0.0)
    execute.add_argument('--take-profit', type=float, default=0.0)
    execute.add_argument('--confidence', type=float, default=50.0)

    sub.add_parser('balance', help='Show the exchange account balance')

    orders = sub.add_parser('orders', help='List persisted orders')
    orders.add_argument('--limit', type=int, default=50)

    return parser


async def async_main(args: argparse.Namespace) -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    if args.command == 'ticker':
        await run_ticker(settings, args.symbol)
    elif args.command == 'price':
        await run_price(settings, args.symbol)
    elif args.command == 'klines':
        await run_klines(settings, args.symbol, args.interval, args.limit)
    elif args.command == 'watch':
        await run_watch(settings, args.symbols, args.duration)
    elif args.command == 'stream':
        await run_stream(settings, args.symbol, args.duration)
    elif args.command == 'execute':
        await run_execute(settings, args)
    elif args.command == 'balance':
        await run_balance(settings)
    elif args.command == 'orders':
        await run_orders(settings, args.limit)
    else:  # pragma: no cover
        raise ValueError(f'Unknown command {args.command}')


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        asyncio.run(async_main(args))
    except AutoTraderError as error:
        logger.error('%s: %s', type(error).__name__, error)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
