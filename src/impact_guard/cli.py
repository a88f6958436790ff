#!/usr/bin/env python3
"""
Command-line interface for impact-guard.

Usage:
    impact-guard register --pool-id 0x... --config-file pool.json --admin 0xAdmin
    impact-guard quote --pool-id 0x... --amount 0.5 --sell-base
    impact-guard show --pool-id 0x...

State lives in Redis (see DatabaseConfig); pool state is read from the
PoolManager configured in ChainConfig.
"""

import argparse
import json
import logging
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import List, Optional

from .config import ConfigError, get_config
from .engine import (
    AdminCredential,
    DecisionEngine,
    ImpactGuardError,
    PoolConfig,
    TradeRequest,
    sqrt_price_to_price,
)
from .events import DecisionLog, DecisionSink, LoggingDecisionSink, NatsDecisionPublisher
from .readers import PoolManagerStateReader, PoolStateReadError
from .storage import RedisStateStore, StorageError

logger = logging.getLogger(__name__)


def build_sinks(config) -> List[DecisionSink]:
    """
    Decision sinks for a ConfigManager.

    The NATS publisher only buffers; a host running an event loop connects it
    with aconnect() and flushes it with apublish_pending().
    """
    sinks: List[DecisionSink] = [LoggingDecisionSink(), DecisionLog.from_config(config.engine)]
    if config.get_nats_publishing_config()["enabled"]:
        sinks.append(NatsDecisionPublisher.from_config(config))
    return sinks


def build_engine(config=None) -> DecisionEngine:
    """Wire the engine to the configured PoolManager, Redis store and sinks."""
    if config is None:
        config = get_config()
    admin = config.engine.ADMIN_IDENTITY or ""
    return DecisionEngine(
        reader=PoolManagerStateReader.from_config(config.chains),
        store=RedisStateStore.from_config(config.database),
        admin=admin,
        sinks=build_sinks(config),
        engine_config=config.engine,
    )


def to_base_units(amount: str, decimals: int) -> int:
    """Convert a decimal token amount into integer base units."""
    try:
        value = Decimal(amount)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount}")
    if value < 0:
        raise ValueError(f"Amount must not be negative: {amount}")
    return int(value.scaleb(decimals))


def cmd_register(engine: DecisionEngine, args: argparse.Namespace) -> int:
    path = Path(args.config_file)
    with path.open("r") as f:
        pool_config = PoolConfig.from_dict(json.load(f))

    registered = engine.register_pool(AdminCredential(args.admin or ""), args.pool_id, pool_config)
    logger.info(f"✅ Registered {args.pool_id} with {len(registered.references)} reference pools")
    print(json.dumps(registered.to_dict(), indent=2))
    return 0


def cmd_quote(engine: DecisionEngine, args: argparse.Namespace) -> int:
    request = TradeRequest(
        pool_id=args.pool_id,
        amount_specified=-to_base_units(args.amount, args.decimals),
        sells_base=args.sell_base,
    )
    decision = engine.quote(request)
    print(json.dumps(decision.to_dict(), indent=2))
    if not decision.allowed:
        logger.warning(f"⚠️  Trade would trip the circuit breaker: {decision.reason}")
        return 2
    return 0


def cmd_show(engine: DecisionEngine, args: argparse.Namespace) -> int:
    pool_config = engine.get_config(args.pool_id)
    if pool_config is None:
        logger.error(f"❌ Pool {args.pool_id} is not registered")
        return 1

    tracked = engine.tracked_reference_prices(args.pool_id)
    references = []
    for index, ref in enumerate(pool_config.references):
        price = tracked[index] if index < len(tracked) else 0
        references.append({
            **ref.to_dict(),
            "tracked_sqrt_price_x96": str(price),
            "tracked_price": sqrt_price_to_price(price),
        })
    print(json.dumps({**pool_config.to_dict(), "references": references}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="impact-guard",
        description="Manipulation detection and dynamic fees for protected AMM pools",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    register = subparsers.add_parser("register", help="Register or replace a pool config")
    register.add_argument("--pool-id", required=True, help="Protected pool id (bytes32 hex)")
    register.add_argument("--config-file", required=True, help="Pool config JSON file")
    register.add_argument("--admin", help="Admin identity presented as credential")
    register.set_defaults(handler=cmd_register)

    quote = subparsers.add_parser("quote", help="Dry-run the decision for a trade")
    quote.add_argument("--pool-id", required=True, help="Protected pool id (bytes32 hex)")
    quote.add_argument("--amount", required=True, help="Input amount in token units")
    quote.add_argument("--decimals", type=int, default=18, help="Input token decimals")
    side = quote.add_mutually_exclusive_group(required=True)
    side.add_argument("--sell-base", dest="sell_base", action="store_true", help="Sell currency0")
    side.add_argument("--sell-quote", dest="sell_base", action="store_false", help="Sell currency1")
    quote.set_defaults(handler=cmd_quote)

    show = subparsers.add_parser("show", help="Show a pool's config and tracked prices")
    show.add_argument("--pool-id", required=True, help="Protected pool id (bytes32 hex)")
    show.set_defaults(handler=cmd_show)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        engine = build_engine()
        return args.handler(engine, args)
    except (ImpactGuardError, ConfigError, ValueError, OSError) as e:
        logger.error(f"❌ {e}")
        return 1
    except (PoolStateReadError, StorageError) as e:
        logger.error(f"❌ Collaborator failure: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
