"""Admin endpoints guarded by the ``X-PIN`` admin token."""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request

from sataddress.api.dependencies import get_store, require_admin
from sataddress.stats import generate_stats
from sataddress.store.client import RecordStore  # noqa: TC001

router = APIRouter(prefix="/api/v1", tags=["admin"], dependencies=[Depends(require_admin)])


@router.get("/stats")
async def stats(
    request: Request,
    store: Annotated[RecordStore, Depends(get_store)],
) -> dict[str, Any]:
    """Usage counters of every address plus their sums."""
    report = await generate_stats(store)
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics.set_address_count(len(report.data))
    return report.to_dict()
