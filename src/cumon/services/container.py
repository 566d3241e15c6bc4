"""Service container with DI wiring."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cumon.services.credentials import CredentialResolver
from cumon.services.history import HistoryStore
from cumon.services.notifier import AlertSink, ThresholdNotifier
from cumon.services.scheduler import PollingScheduler
from cumon.services.usage_client import UsageClient

if TYPE_CHECKING:
    from cumon.config import Config


@dataclass
class ServiceContainer:
    """Holds all application services. Built once at startup."""

    resolver: CredentialResolver
    client: UsageClient
    history: HistoryStore
    scheduler: PollingScheduler

    @classmethod
    def create(cls, config: Config, alert_sink: AlertSink | None = None) -> ServiceContainer:
        """Factory that wires all dependencies from ``config``."""
        resolver = CredentialResolver.from_config(config)
        client = UsageClient.from_config(config, resolver)
        history = HistoryStore.from_config(config)
        scheduler = PollingScheduler(
            client,
            history,
            notifier=ThresholdNotifier(),
            alert_sink=alert_sink,
            interval=config.poll_interval,
            alerts_enabled=config.alerts_enabled,
        )
        return cls(resolver=resolver, client=client, history=history, scheduler=scheduler)

    async def close(self) -> None:
        """Shut down all services."""
        await self.scheduler.aclose()
        await self.client.close()
