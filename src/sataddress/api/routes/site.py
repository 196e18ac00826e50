"""Site information for the registration front end."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends

from sataddress import __version__
from sataddress.api.dependencies import get_config
from sataddress.config.settings import AppConfig  # noqa: TC001

router = APIRouter(tags=["site"])


@router.get("/")
async def index(config: Annotated[AppConfig, Depends(get_config)]) -> dict[str, Any]:
    return {
        "site_name": config.site_name,
        "site_sub_name": config.site_sub_name,
        "domains": config.domains,
        "version": __version__,
    }
