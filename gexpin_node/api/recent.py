from typing import List

from fastapi import APIRouter, Request

from ..models import PackageRecord

router = APIRouter(tags=["recent"])


@router.get("/recent", response_model=List[PackageRecord])
def recent(request: Request) -> List[PackageRecord]:
    """Most recently pinned version of every repo pinned since startup."""
    return request.app.state.service.recent.snapshot()
