"""
Populate a repository with the services and opening hours from configuration.
"""

import logging

from ..config import AppConfig
from ..services.protocols import BookingRepository

logger = logging.getLogger(__name__)


def seed_repository(repository: BookingRepository, config: AppConfig) -> None:
    """
    Write configured services and weekly working hours into ``repository``.

    Services are upserted by id. Working hours are only added for weekdays
    that have no windows yet, so seeding twice does not duplicate them.
    """
    for service_config in config.services:
        repository.add_service(service_config.to_service())

    seeded_days = 0
    for day_of_week in range(7):
        if repository.list_working_hours(day_of_week):
            continue

        windows = config.windows_for_day(day_of_week)
        for window in windows:
            repository.add_working_hours(day_of_week, window)
        if windows:
            seeded_days += 1

    logger.info(
        "Seeded %d services and working hours for %d weekdays",
        len(config.services),
        seeded_days,
    )
