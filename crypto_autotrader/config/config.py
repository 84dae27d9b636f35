"""Application-wide configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Mapping

_ENV_COMMENT_PREFIX = '#'
_TRUTHY = {'1', 'true', 'yes'}


def _load_env_file(path: Path) -> Dict[str, str]:
    """Load simple KEY=VALUE pairs from a .env style file if it exists."""
    if not path.exists():
        return {}

    values: Dict[str, str] = {}
    for raw_line in path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith(_ENV_COMMENT_PREFIX):
            continue
        if '=' not in line:
            continue
        key, value = line.split('=', 1)
        values[key.strip()] = value.strip().strip('"').strip("\'")
    return values


def _merge_env(sources: Iterable[Mapping[str, str]]) -> Dict[str, str]:
    merged: Dict[str, str] = {}
    for source in sources:
        merged.update(source)
    return merged


def _as_bool(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


@dataclass
class Settings:
    """Container for application level settings.

    Values are resolved from (in order): process environment, `.env` file,
    and finally the provided defaults.
    """

    environment: str = 'development'
    database_url: str = 'sqlite:///data/autotrader.db'
    data_directory: Path = field(default_factory=lambda: Path('data'))
    log_level: str = 'INFO'
    use_testnet: bool = True
    exchange: str = 'demo'
    market_data_url: str = 'https://api.binance.com/api/v3'
    refresh_interval: float = 30.0
    request_timeout: float = 10.0
    order_timeout: float = 10.0
    enforce_risk_checks: bool = False
    max_risk_pct: float = 2.0
    quote_asset: str = 'USDT'
    persist_orders: bool = False
    env_file: Path = field(default_factory=lambda: Path('.env'))

    @classmethod
    def from_env(
        cls,
        env_file: str | Path = '.env',
        environ: Mapping[str, str] | None = None,
    ) -> 'Settings':
        env_path = Path(env_file)
        env_file_values = _load_env_file(env_path)
        merged = _merge_env([env_file_values, dict(os.environ if environ is None else environ)])

        kwargs = {
            'environment': merged.get('APP_ENV', cls.environment),
            'database_url': merged.get('DATABASE_URL', cls.database_url),
            'data_directory': Path(merged.get('DATA_DIRECTORY', 'data')),
            'log_level': merged.get('LOG_LEVEL', cls.log_level),
            'use_testnet': _as_bool(merged.get('USE_TESTNET', str(cls.use_testnet))),
            'exchange': merged.get('EXCHANGE', cls.exchange).strip().lower(),
            'market_data_url': merged.get('MARKET_DATA_URL', cls.market_data_url).rstrip('/'),
            'refresh_interval': float(merged.get('MARKET_REFRESH_INTERVAL', cls.refresh_interval)),
            'request_timeout': float(merged.get('MARKET_REQUEST_TIMEOUT', cls.request_timeout)),
            'order_timeout': float(merged.get('ORDER_TIMEOUT', cls.order_timeout)),
            'enforce_risk_checks': _as_bool(
                merged.get('ENFORCE_RISK_CHECKS', str(cls.enforce_risk_checks))
            ),
            'max_risk_pct': float(merged.get('MAX_RISK_PCT', cls.max_risk_pct)),
            'quote_asset': merged.get('QUOTE_ASSET', cls.quote_asset).upper(),
            'persist_orders': _as_bool(merged.get('PERSIST_ORDERS', str(cls.persist_orders))),
            'env_file': env_path,
        }
        return cls(**kwargs)

    def ensure_directories(self) -> None:
        """Create required directories if they are missing."""
        self.data_directory = Path(self.data_directory)
        self.data_directory.mkdir(parents=True, exist_ok=True)

    def resolved_env(self, environ: Mapping[str, str] | None = None) -> Dict[str, str]:
        """Return the `.env` values this instance was loaded from, overlaid by the environment."""
        return _merge_env([_load_env_file(Path(self.env_file)), dict(os.environ if environ is None else environ)])


load_settings = Settings.from_env

__all__ = ['Settings', 'load_settings']
