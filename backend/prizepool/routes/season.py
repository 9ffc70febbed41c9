from fastapi import APIRouter, Depends

from prizepool.config import config
from prizepool.logic.season import get_season_config, set_season_config
from prizepool.models.db.season import SeasonConfig
from prizepool.models.db.user import UserPublic
from prizepool.routes.auth import admin_authenticated
from prizepool.routes.models import SeasonConfigResponse

router = APIRouter(prefix=config.api_prefix)


@router.get("/admin/season", response_model=SeasonConfigResponse)
async def get_season(_: UserPublic = Depends(admin_authenticated)) -> SeasonConfigResponse:
    return SeasonConfigResponse(data=await get_season_config())


@router.put("/admin/season", response_model=SeasonConfigResponse)
async def put_season(
    body: SeasonConfig, user: UserPublic = Depends(admin_authenticated)
) -> SeasonConfigResponse:
    return SeasonConfigResponse(data=await set_season_config(body, user.id))
