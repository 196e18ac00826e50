"""HTTP routes.

- ``/``                             site information
- ``/.well-known/lnurlp/{username}`` LNURL-pay (both phases)
- ``/grab``                         address registration and edits
- ``/api/v1/stats``                 usage statistics (admin token)
"""

from fastapi import APIRouter

from sataddress.api.routes.admin import router as admin_router
from sataddress.api.routes.lnurl import router as lnurl_router
from sataddress.api.routes.registration import router as registration_router
from sataddress.api.routes.site import router as site_router

api_router = APIRouter()

api_router.include_router(site_router)
api_router.include_router(lnurl_router)
api_router.include_router(registration_router)
api_router.include_router(admin_router)

__all__ = ["api_router"]
