"""
Profilebook Backend — News Route
=================================

POST /news {"what": "<search term>"} → the external API's `results` array.

Failures surface as NewsServiceError and are answered by the global handler
with the generic error payload, so the request always completes.
"""

from typing import Any, List

from fastapi import APIRouter

from profilebook.schemas.profile import NewsRequest
from profilebook.services.news_service import news_service

router = APIRouter(tags=["News"])


@router.post("/news", response_model=List[Any])
async def search_news(payload: NewsRequest) -> List[Any]:
    return await news_service.search(payload.what)
