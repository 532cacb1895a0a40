"""
Assembly summary manifest

Local cache of NCBI's assembly_summary_<source>.txt tables, header parsing,
typed rows and the accession filter set.

Layout of the table:
    line 1: title / comment
    line 2: '#'-prefixed tab separated column names
    then one tab separated row per assembly
"""

import logging
import os
import sys
import time
from pathlib import Path

from .errors import ConfigError, ManifestFormatError, TransferError

logger = logging.getLogger(__name__)

HEADER_LINES = 2
SECONDS_PER_DAY = 24 * 60 * 60


class ManifestCache:
    """A manifest file on disk refreshed from its URL when stale."""

    def __init__(self, url, path, downloader, max_age_days=1, clock=time.time):
        self.url = url
        self.path = Path(path)
        self.downloader = downloader
        self.max_age_days = max_age_days
        self.clock = clock

    def age_days(self):
        return (self.clock() - self.path.stat().st_mtime) / SECONDS_PER_DAY

    def is_fresh(self):
        if not self.path.exists():
            return False
        return self.age_days() < self.max_age_days

    def refresh(self):
        """Download the manifest, replacing the cached copy on success only."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        partial = self.path.with_name(self.path.name + '.part')

        print(f"Downloading assembly summary from {self.url}...", file=sys.stderr)
        transfer = self.downloader.download(self.url, partial)
        if not transfer.ok:
            if partial.exists():
                partial.unlink()
            raise TransferError(
                f"Could not download {self.url}: {transfer.output}", transfer)
        os.replace(partial, self.path)

    def ensure(self):
        """Return the path of an up-to-date manifest."""
        if self.is_fresh():
            logger.debug("Using cached manifest %s (%.2f days old)",
                         self.path, self.age_days())
        else:
            self.refresh()
        return self.path


def read_header(path):
    """
    Read the two header lines of a manifest.

    Returns:
        (column names, raw column header line)
    """
    with open(path, 'r') as f:
        lines = [f.readline() for _ in range(HEADER_LINES)]

    header_line = lines[-1].rstrip('\r\n')
    if not header_line.startswith('#'):
        raise ManifestFormatError(
            f"{path}: expected '#'-prefixed column names on line {HEADER_LINES}")

    columns = header_line[1:].lstrip(' ').split('\t')
    return columns, header_line


def iter_data_lines(path):
    """Yield the data lines of a manifest, without their line ending."""
    with open(path, 'r') as f:
        for _ in range(HEADER_LINES):
            f.readline()
        for line in f:
            line = line.rstrip('\r\n')
            if line:
                yield line


def first_field(line):
    return line.split('\t', 1)[0]


class ManifestRow:
    """One assembly of the manifest, keyed by column name."""

    def __init__(self, fields):
        self.fields = fields

    @classmethod
    def parse(cls, columns, line):
        values = line.split('\t')
        if len(values) != len(columns):
            raise ManifestFormatError(
                f"Row has {len(values)} columns, header has {len(columns)}: "
                f"{line[:80]}")
        return cls(dict(zip(columns, values)))

    def __getitem__(self, column):
        return self.fields[column]

    @property
    def accession(self):
        return self.fields['assembly_accession']

    @property
    def organism_name(self):
        return self.fields.get('organism_name', '')

    @property
    def ftp_path(self):
        return self.fields['ftp_path']

    def __repr__(self):
        return f"ManifestRow({self.accession!r})"


def iter_rows(path, columns):
    for line in iter_data_lines(path):
        yield ManifestRow.parse(columns, line)


def load_accessions(source):
    """
    Load an accession filter set.

    Args:
        source: path of a file, '-' for standard input, or an open handle.
            The first whitespace delimited token of each line is used.

    Returns:
        Set of accessions
    """
    if hasattr(source, 'read'):
        return _read_accessions(source)
    if str(source) == '-':
        return _read_accessions(sys.stdin)

    try:
        with open(source, 'r') as f:
            return _read_accessions(f)
    except OSError as e:
        raise ConfigError(f"Cannot read accessions from {source}: {e}")


def _read_accessions(handle):
    accessions = set()
    duplicates = 0
    for line in handle:
        tokens = line.split()
        if not tokens:
            continue
        if tokens[0] in accessions:
            duplicates += 1
        accessions.add(tokens[0])

    logger.debug("Loaded %d accessions (%d duplicates)",
                 len(accessions), duplicates)
    return accessions
