from heliclockter import datetime_utc

from prizepool.database import database
from prizepool.models.db.season import SeasonConfig
from prizepool.utils.types import assert_some

SEASON_CONFIG_ID = 1


async def sql_get_or_create_season_config(defaults: SeasonConfig) -> SeasonConfig:
    query = """
        INSERT INTO season_config (id, mode, prize_mode, free_prize_pool, updated)
        VALUES (:id, :mode, :prize_mode, :free_prize_pool, :updated)
        ON CONFLICT (id) DO UPDATE SET id = EXCLUDED.id
        RETURNING mode, prize_mode, free_prize_pool
        """
    row = await database.fetch_one(
        query=query,
        values={
            "id": SEASON_CONFIG_ID,
            "mode": defaults.mode.value,
            "prize_mode": defaults.prize_mode.value,
            "free_prize_pool": defaults.free_prize_pool,
            "updated": datetime_utc.now(),
        },
    )
    return SeasonConfig.model_validate(dict(assert_some(row)._mapping))


async def sql_upsert_season_config(season: SeasonConfig) -> SeasonConfig:
    query = """
        INSERT INTO season_config (id, mode, prize_mode, free_prize_pool, updated)
        VALUES (:id, :mode, :prize_mode, :free_prize_pool, :updated)
        ON CONFLICT (id) DO UPDATE
        SET
            mode = EXCLUDED.mode,
            prize_mode = EXCLUDED.prize_mode,
            free_prize_pool = EXCLUDED.free_prize_pool,
            updated = EXCLUDED.updated
        RETURNING mode, prize_mode, free_prize_pool
        """
    row = await database.fetch_one(
        query=query,
        values={
            "id": SEASON_CONFIG_ID,
            "mode": season.mode.value,
            "prize_mode": season.prize_mode.value,
            "free_prize_pool": season.free_prize_pool,
            "updated": datetime_utc.now(),
        },
    )
    return SeasonConfig.model_validate(dict(assert_some(row)._mapping))
