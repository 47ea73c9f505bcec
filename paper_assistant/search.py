"""Paper search: arXiv lookup, per-paper summaries, and query history."""

import logging
import time
from dataclasses import dataclass, asdict
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .arxiv_client import ArxivClient, ArxivError
from .database import User, QueryCRUD
from .errors import ConfigurationError, SearchFailed
from .summarizer import Summarizer

logger = logging.getLogger(__name__)


@dataclass
class Paper:
    title: str
    authors: List[str]
    url: str
    published_date: str
    abstract: str
    summary: str

    def to_result(self) -> dict:
        """Fields persisted in the query history (the abstract is not kept)."""
        data = asdict(self)
        data.pop("abstract")
        return data


class PaperSearchService:
    """Runs one search for one user and records it."""

    def __init__(self, arxiv: ArxivClient, summarizer: Summarizer):
        self.arxiv = arxiv
        self.summarizer = summarizer

    async def search(self, db: Session, user: User, query: str) -> List[Paper]:
        """
        Search arXiv, summarize each hit, and store the query record.

        Raises:
            ConfigurationError: If the user has no external API key (nothing is called or stored)
            SearchFailed: If arXiv or the database fails (nothing is stored)
        """
        api_key = user.external_api_key
        if not api_key:
            raise ConfigurationError()

        start_time = time.time()
        try:
            entries = await self.arxiv.search(query)
        except ArxivError as e:
            logger.error(f"Search error: {e}")
            raise SearchFailed() from e

        papers = []
        fallbacks = 0
        for entry in entries[: self.arxiv.config.max_results]:
            summary = await self.summarizer.summarize(entry.abstract, api_key)
            if summary.is_fallback:
                fallbacks += 1
                logger.warning(
                    "summary_fallback",
                    extra={"event": "summary_fallback", "url": entry.url, "reason": summary.error}
                )
            papers.append(Paper(
                title=entry.title,
                authors=entry.authors,
                url=entry.url,
                published_date=entry.published,
                abstract=entry.abstract,
                summary=summary.text,
            ))

        try:
            QueryCRUD.create(db, user.id, query, [paper.to_result() for paper in papers])
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Search error: could not save query: {e}")
            raise SearchFailed() from e

        logger.info(
            "search_completed",
            extra={
                "event": "search_completed",
                "user_id": user.id,
                "papers": len(papers),
                "summary_fallbacks": fallbacks,
                "duration_ms": int((time.time() - start_time) * 1000),
            }
        )
        return papers
