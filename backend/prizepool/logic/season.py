import time

from prizepool.config import config
from prizepool.database import database
from prizepool.models.db.season import SeasonConfig
from prizepool.sql.audit import record_audit_event
from prizepool.sql.season import sql_get_or_create_season_config, sql_upsert_season_config
from prizepool.utils.id_types import UserId
from prizepool.utils.logging import logger

_cached_season: tuple[float, SeasonConfig] | None = None


def get_default_season_config() -> SeasonConfig:
    return SeasonConfig(
        mode=config.season_mode,
        prize_mode=config.prize_mode,
        free_prize_pool=config.free_prize_pool,
    )


def invalidate_season_cache() -> None:
    global _cached_season
    _cached_season = None


async def get_season_config() -> SeasonConfig:
    """Current season configuration, cached for ``season_cache_ttl_seconds``."""
    global _cached_season
    now = time.monotonic()
    if _cached_season is not None and now - _cached_season[0] < config.season_cache_ttl_seconds:
        return _cached_season[1]

    season = await sql_get_or_create_season_config(get_default_season_config())
    _cached_season = (now, season)
    return season


async def set_season_config(season: SeasonConfig, actor_id: UserId) -> SeasonConfig:
    async with database.transaction():
        before = await sql_get_or_create_season_config(get_default_season_config())
        updated = await sql_upsert_season_config(season)
        await record_audit_event("SEASON_CONFIG_UPDATED", actor_id, "season", 1, before, updated)

    global _cached_season
    _cached_season = (time.monotonic(), updated)
    logger.info(f"Season set to {updated.mode.value} with {updated.prize_mode.value} prizes")
    return updated
