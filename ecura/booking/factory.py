from typing import Callable

from loguru import logger

from ecura.booking.adapters.webhook import WebhookNotifier
from ecura.booking.ids import SequentialIdGenerator, UuidIdGenerator
from ecura.booking.ports import IdGenerator
from ecura.booking.service import ClinicService
from ecura.booking.store import ClinicStore
from ecura.config import AppConfig, IdStrategy

_ID_GENERATORS: dict[IdStrategy, Callable[[], IdGenerator]] = {
    IdStrategy.UUID: UuidIdGenerator,
    IdStrategy.SEQUENTIAL: SequentialIdGenerator,
}


def build_clinic_service(config: AppConfig, store: ClinicStore | None = None) -> ClinicService:
    """Build the booking service with the configured webhook and id strategy."""
    strategy = config.scheduling.id_strategy
    logger.info("Building clinic service with id strategy: {}", strategy.value)
    if not config.webhook.url:
        logger.warning("No webhook URL configured; new-appointment notifications will fail")

    notifier = WebhookNotifier(
        config.webhook.url,
        source=config.webhook.source,
        timeout=config.webhook.timeout_seconds,
    )
    return ClinicService(
        store or ClinicStore(),
        notifier,
        id_generator=_ID_GENERATORS[strategy](),
        config=config.scheduling,
    )
