"""Exchange credential settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from ..errors import ConfigurationError
from ..models import Exchange
from .config import Settings


@dataclass
class ExchangeCredentials:
    """Normalized representation of one exchange account configuration."""

    exchange: Exchange
    api_key: str = ''
    api_secret: str = ''
    testnet: bool = True
    passphrase: Optional[str] = None
    recv_window: int = 5_000

    def __post_init__(self) -> None:
        self.exchange = Exchange.parse(self.exchange)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def validate(self) -> 'ExchangeCredentials':
        """Reject real-exchange configurations without a key pair."""
        if self.exchange is not Exchange.DEMO and not self.is_configured:
            raise ConfigurationError(
                f'{self.exchange.value} requires EXCHANGE_API_KEY and EXCHANGE_API_SECRET'
            )
        if self.exchange is Exchange.OKX and not self.passphrase:
            raise ConfigurationError('okx requires EXCHANGE_PASSPHRASE')
        return self

    def __repr__(self) -> str:
        return (
            f'ExchangeCredentials(exchange={self.exchange.value!r}, '
            f'api_key={"***" if self.api_key else ""!r}, testnet={self.testnet})'
        )

    @classmethod
    def from_env(
        cls,
        settings: Settings,
        environ: Mapping[str, str] | None = None,
    ) -> 'ExchangeCredentials':
        env = settings.resolved_env(environ)
        return cls(
            exchange=settings.exchange,
            api_key=env.get('EXCHANGE_API_KEY', ''),
            api_secret=env.get('EXCHANGE_API_SECRET', ''),
            testnet=settings.use_testnet,
            passphrase=env.get('EXCHANGE_PASSPHRASE') or None,
            recv_window=int(env.get('EXCHANGE_RECV_WINDOW', cls.recv_window)),
        )


__all__ = ['ExchangeCredentials']
