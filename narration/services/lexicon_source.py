"""Fetch and parse the pronunciation lexicon published as CSV."""

import csv
import io
from typing import Dict, List, Optional

import httpx

from narration.core.errors import MalformedSource, SourceUnavailable
from narration.core.logger import logger
from narration.models.lexicon import LexiconTerm

TERM_COLUMNS = ("term", "word")
SPOKEN_COLUMNS = ("spoken", "pronunciation")


def _find_column(fieldnames: List[str], synonyms) -> Optional[str]:
    by_lower: Dict[str, str] = {}
    for name in fieldnames:
        by_lower.setdefault((name or "").strip().lower(), name)
    for synonym in synonyms:
        if synonym in by_lower:
            return by_lower[synonym]
    return None


def parse_lexicon_csv(csv_text: str) -> List[LexiconTerm]:
    """Parse CSV rows into lexicon terms, in source order.

    Header names are matched case-insensitively; ``term``/``word`` name the
    written column and ``spoken``/``pronunciation`` the spoken column. Rows
    with an empty term or spoken form are skipped.

    Raises:
        MalformedSource: No header row, missing columns, or unreadable CSV.
    """
    reader = csv.DictReader(io.StringIO(csv_text.lstrip("\ufeff")))
    try:
        fieldnames = reader.fieldnames
        if not fieldnames:
            raise MalformedSource("Lexicon CSV has no header row")

        term_col = _find_column(fieldnames, TERM_COLUMNS)
        spoken_col = _find_column(fieldnames, SPOKEN_COLUMNS)
        if term_col is None or spoken_col is None:
            raise MalformedSource(
                f"Lexicon CSV needs a term and a spoken column, got headers {fieldnames}"
            )

        terms = []
        for row in reader:
            entry = LexiconTerm(term=row.get(term_col), spoken=row.get(spoken_col))
            if entry.is_usable:
                terms.append(entry)
    except csv.Error as e:
        raise MalformedSource(f"Lexicon CSV could not be parsed: {e}") from e

    return terms


class CsvLexiconSource:
    """Callable fetcher that downloads the lexicon CSV over HTTP."""

    def __init__(self, url: Optional[str], timeout: float = 20.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.url = url
        self.timeout = timeout
        self.transport = transport

    async def __call__(self) -> List[LexiconTerm]:
        if not self.url:
            raise SourceUnavailable("LEXICON_CSV_URL not set")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
                resp = await client.get(self.url)
        except httpx.HTTPError as e:
            raise SourceUnavailable(f"Lexicon fetch failed: {e}") from e

        if resp.status_code != 200:
            raise SourceUnavailable(f"Lexicon fetch failed: {resp.status_code} {resp.text[:200]}")

        terms = parse_lexicon_csv(resp.text)
        logger.info(f"Fetched {len(terms)} lexicon terms")
        return terms
