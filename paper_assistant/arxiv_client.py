"""arXiv API client.

Builds the search expression, calls the Atom export endpoint and parses the
feed into ``ArxivEntry`` values.
"""

import re
import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import List

import httpx

from .config import SearchConfig

logger = logging.getLogger(__name__)

ATOM_NS = {"atom": "http://www.w3.org/2005/Atom"}


class ArxivError(Exception):
    """The arXiv request failed or returned an unreadable feed."""


@dataclass
class ArxivEntry:
    """One paper from an arXiv Atom feed."""
    title: str
    url: str
    published: str
    abstract: str
    authors: List[str] = field(default_factory=list)


def normalize_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text or "").strip()


def build_search_query(query: str, category: str = "cs.*") -> str:
    """Match the query against title or abstract within one subject category.

    Double quotes are removed from the query so the phrase stays balanced.
    """
    phrase = normalize_whitespace(query.replace('"', " "))
    return f'(ti:"{phrase}" OR abs:"{phrase}") AND cat:{category}'


def _text(entry: ET.Element, tag: str) -> str:
    node = entry.find(tag, ATOM_NS)
    if node is None or node.text is None:
        return ""
    return node.text


def parse_feed(xml_text: str) -> List[ArxivEntry]:
    """Parse an arXiv Atom feed.

    Raises:
        ArxivError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ArxivError(f"Could not parse arXiv response: {e}") from e

    entries = []
    for entry in root.findall("atom:entry", ATOM_NS):
        authors = [
            normalize_whitespace(_text(author, "atom:name"))
            for author in entry.findall("atom:author", ATOM_NS)
        ]
        entries.append(ArxivEntry(
            title=normalize_whitespace(_text(entry, "atom:title")),
            url=_text(entry, "atom:id").strip(),
            published=_text(entry, "atom:published").strip(),
            abstract=normalize_whitespace(_text(entry, "atom:summary")),
            authors=[a for a in authors if a],
        ))
    return entries


class ArxivClient:
    """Thin async wrapper around the arXiv export API."""

    def __init__(self, http_client: httpx.AsyncClient, config: SearchConfig):
        self._http = http_client
        self.config = config

    async def search(self, query: str) -> List[ArxivEntry]:
        """Return the top entries for a free-text query, most relevant first.

        Raises:
            ArxivError: On transport errors, non-2xx responses or bad XML
        """
        params = {
            "search_query": build_search_query(query, self.config.category),
            "start": 0,
            "max_results": self.config.max_results,
            "sortBy": self.config.sort_by,
            "sortOrder": self.config.sort_order,
        }

        try:
            response = await self._http.get(
                self.config.api_url,
                params=params,
                timeout=self.config.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ArxivError(f"arXiv returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise ArxivError(f"arXiv request failed: {e}") from e

        entries = parse_feed(response.text)
        logger.debug(f"arXiv returned {len(entries)} entries")
        return entries[: self.config.max_results]
