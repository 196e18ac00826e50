"""LNURL-pay endpoint (LUD-06 / LUD-16).

``GET /.well-known/lnurlp/{username}`` answers both protocol phases; the
address domain is the host the request was sent to.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from sataddress.api.dependencies import get_config, get_lnurl_handler, request_domain
from sataddress.config.settings import AppConfig  # noqa: TC001
from sataddress.errors.definitions import ErrRecordNotFound
from sataddress.lnurl.handler import LNURLP_PATH, LnurlPayHandler
from sataddress.lnurl.models import error_response

router = APIRouter(tags=["lnurl"])


@router.get(LNURLP_PATH + "{username}")
async def lnurl_pay(
    request: Request,
    username: str,
    config: Annotated[AppConfig, Depends(get_config)],
    handler: Annotated[LnurlPayHandler, Depends(get_lnurl_handler)],
) -> JSONResponse:
    """Pay request parameters, or an invoice when ``amount`` is given."""
    domain = request_domain(request)
    if domain not in config.domains:
        return JSONResponse(status_code=404, content=error_response(ErrRecordNotFound.message))

    reply = await handler.handle(username, domain, request.query_params)
    return JSONResponse(status_code=reply.status_code, content=reply.body)
