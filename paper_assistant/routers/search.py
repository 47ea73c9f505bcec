"""Search Router: arXiv paper search and the caller's query history."""

from typing import List

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..database import get_db, User, QueryCRUD, QueryRecord
from ..models import (
    SearchRequest, SearchResponse, PaperResponse,
    QueryRecordResponse, QueryResultResponse,
)
from ..search import PaperSearchService

router = APIRouter(prefix="/api", tags=["Search"])


def get_search_service(request: Request) -> PaperSearchService:
    return request.app.state.search_service


def _record_to_response(record: QueryRecord) -> QueryRecordResponse:
    return QueryRecordResponse(
        id=record.id,
        user_id=record.user_id,
        query=record.query,
        results=[
            QueryResultResponse(
                title=result.title,
                authors=list(result.authors or []),
                summary=result.summary,
                url=result.url,
                published_date=result.published_date,
            )
            for result in record.results
        ],
        created_at=record.created_at.isoformat(),
    )


@router.post("/search", response_model=SearchResponse)
async def search_papers(
    request: SearchRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    service: PaperSearchService = Depends(get_search_service),
):
    """
    Search arXiv for papers matching the query.

    Each paper comes with a short LLM summary made with the caller's key,
    or the start of its abstract when the summary call fails.
    The query and its results are saved to the caller's history.
    """
    papers = await service.search(db, current_user, request.query)
    return SearchResponse(papers=[
        PaperResponse(
            title=paper.title,
            authors=paper.authors,
            url=paper.url,
            published_date=paper.published_date,
            abstract=paper.abstract,
            summary=paper.summary,
        )
        for paper in papers
    ])


@router.get("/queries", response_model=List[QueryRecordResponse])
async def recent_queries(
    http_request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """The caller's most recent searches, newest first."""
    limit = http_request.app.state.config.history.limit
    records = QueryCRUD.recent_for_user(db, current_user.id, limit=limit)
    return [_record_to_response(record) for record in records]
