"""
Single record fetcher

Download one EUtils efetch record to <id>.<first two letters of rettype> and
classify the outcome as ok, EMPTY or FAIL.
"""

import logging
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import (
    EFETCH_URL,
    DEFAULT_DATABASE,
    DEFAULT_RETTYPE,
    DEFAULT_RETMODE,
    EMPTY_THRESHOLD,
)

logger = logging.getLogger(__name__)

OK = 'ok'
EMPTY = 'EMPTY'
FAIL = 'FAIL'


@dataclass(frozen=True)
class EfetchQuery:
    id: str
    database: str = DEFAULT_DATABASE
    rettype: str = DEFAULT_RETTYPE
    retmode: str = DEFAULT_RETMODE

    @property
    def url(self):
        params = urllib.parse.urlencode({
            'db': self.database,
            'id': self.id,
            'rettype': self.rettype,
            'retmode': self.retmode,
        })
        return f"{EFETCH_URL}?{params}"

    @property
    def filename(self):
        return f"{self.id}.{self.rettype[:2]}"

    @property
    def label(self):
        return f"[{self.database} {self.rettype}]"


@dataclass(frozen=True)
class FetchResult:
    query: EfetchQuery
    status: str
    path: Path
    size: Optional[int] = None

    @property
    def ok(self):
        return self.status == OK


def format_status(result):
    """Render a result as one line of the fetch status table."""
    query = result.query
    size = '-' if result.size is None else result.size
    return (f"{query.label:<20} {query.id:>15} {query.filename:>20} "
            f"{size:>15} {result.status:>6}")


class RecordFetcher:
    """
    Fetch records through a transfer collaborator.

    The transport needs a single method, retrieve(query, dest), returning a
    TransferResult (see EntrezClient and Wget).
    """

    def __init__(self, transport, output_dir="."):
        self.transport = transport
        self.output_dir = Path(output_dir)

    def fetch(self, id, database=DEFAULT_DATABASE, return_type=DEFAULT_RETTYPE,
              return_mode=DEFAULT_RETMODE):
        query = EfetchQuery(id, database, return_type, return_mode)
        dest = self.output_dir / query.filename

        transfer = self.transport.retrieve(query, dest)
        if not transfer.ok:
            logger.debug("Transfer of %s failed: %s", query.url, transfer.output)
            if dest.exists():
                dest.unlink()
            return FetchResult(query, FAIL, dest)

        size = dest.stat().st_size if dest.exists() else 0
        if size < EMPTY_THRESHOLD:
            if dest.exists():
                dest.unlink()
            return FetchResult(query, EMPTY, dest, size)

        return FetchResult(query, OK, dest, size)

    def fetch_and_report(self, id, database=DEFAULT_DATABASE,
                         return_type=DEFAULT_RETTYPE,
                         return_mode=DEFAULT_RETMODE):
        """Fetch a record and print its status line."""
        result = self.fetch(id, database, return_type, return_mode)
        print(format_status(result), flush=True)
        return result
