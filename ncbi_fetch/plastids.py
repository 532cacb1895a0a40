"""
Plastid genome batch download.

Retrieve NCBI's plastid accession list and fetch every accession as FASTA and
GenBank through the single record fetcher.
"""

import sys
from collections import Counter
from datetime import date
from pathlib import Path

from .config import DEFAULT_DATABASE, PLASTID_LIST_FILE, PLASTID_RECORD_TYPES
from .errors import ConfigError, TransferError


def make_batch_dir(base_dir=".", today=None):
    """Create the dated plastids-YYYYMMDD directory; it must not exist yet."""
    today = today or date.today()
    batch_dir = Path(base_dir) / f"plastids-{today:%Y%m%d}"
    try:
        batch_dir.mkdir(parents=True)
    except FileExistsError:
        raise ConfigError(f"Output directory already exists: {batch_dir}")
    return batch_dir


def read_accession_list(list_file):
    """Accessions of the list, one per non-blank line; the batch total counts these."""
    with open(list_file, 'r') as f:
        return [line.rstrip('\r\n') for line in f if line.strip()]


def fetch_all(list_url, fetcher, downloader, list_file=PLASTID_LIST_FILE):
    """
    Download the accession list and fetch each accession twice.

    Args:
        list_url: URL of the accession list (one accession per line)
        fetcher: RecordFetcher writing into the batch directory
        downloader: object with download(url, dest) -> TransferResult
        list_file: where to save the list

    Returns:
        Counter of fetch statuses ('ok', 'EMPTY', 'FAIL')
    """
    print("Retrieving accessions list .. ", end='', flush=True)
    transfer = downloader.download(list_url, list_file)
    if not transfer.ok:
        print("FAILED", file=sys.stderr)
        raise TransferError(f"Could not retrieve accession list {list_url}",
                            transfer)
    print("ok")

    accessions = read_accession_list(list_file)
    total = len(accessions)
    print(f"Retrieving {total} records .. ")

    stats = Counter()
    for idx, accession in enumerate(accessions, 1):
        print(f"[{idx}/{total}]")
        for rettype, retmode in PLASTID_RECORD_TYPES:
            result = fetcher.fetch_and_report(accession, DEFAULT_DATABASE,
                                              rettype, retmode)
            stats[result.status] += 1

    print(".. Done")
    return stats
