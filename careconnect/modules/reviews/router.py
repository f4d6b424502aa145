"""Review routes."""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from careconnect.core.cache import Cache, get_cache
from careconnect.core.database import get_db
from careconnect.core.deps import require_patient
from careconnect.modules.reviews.models import Review
from careconnect.modules.reviews.schemas import ReviewCreate, ReviewPublic
from careconnect.modules.reviews.service import ReviewService
from careconnect.modules.users.models import User

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])


def get_service(db: AsyncSession = Depends(get_db), cache: Cache = Depends(get_cache)) -> ReviewService:
    return ReviewService(db, cache)


@router.post("", response_model=ReviewPublic, status_code=status.HTTP_201_CREATED)
async def create_review(
    payload: ReviewCreate,
    current_user: User = Depends(require_patient),
    service: ReviewService = Depends(get_service),
) -> Review:
    return await service.create(current_user, payload)


@router.get("", response_model=list[ReviewPublic])
async def provider_reviews(
    provider_id: str = Query(...),
    limit: int = Query(50, gt=0, le=200),
    offset: int = Query(0, ge=0),
    service: ReviewService = Depends(get_service),
) -> list[Review]:
    return await service.list_for_provider(provider_id, limit, offset)
