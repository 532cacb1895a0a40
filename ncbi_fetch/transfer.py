"""
Transfer collaborators.

Every external download (wget, urllib, Entrez) is wrapped so that it returns a
TransferResult instead of raising or exiting, letting callers decide whether a
failure is fatal.
"""

import http.client
import logging
import subprocess
import time
import urllib.request
from dataclasses import dataclass
from pathlib import Path

from Bio import Entrez

from .config import EntrezOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferResult:
    returncode: int
    output: str = ''
    duration: float = 0.0

    @property
    def ok(self):
        return self.returncode == 0


class Wget:
    """Thin wrapper around the wget command line tool."""

    def __init__(self, executable='wget', quiet=True):
        self.executable = executable
        self.quiet = quiet

    def _run(self, cmd):
        logger.debug("Running: %s", ' '.join(cmd))
        start = time.monotonic()
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError as e:
            return TransferResult(127, str(e), time.monotonic() - start)
        result = TransferResult(proc.returncode, proc.stderr,
                                time.monotonic() - start)
        logger.debug("%s exited %d after %.1fs", self.executable,
                     result.returncode, result.duration)
        return result

    def download(self, url, dest):
        """Download a single URL to dest."""
        cmd = [self.executable, '--quiet', '-O', str(dest), url]
        return self._run(cmd)

    def retrieve(self, query, dest):
        """Fetch an efetch query through its URL."""
        return self.download(query.url, dest)

    def mirror(self, url, dest_dir, accept=(), reject=()):
        """
        Recursively download the files of a remote directory into dest_dir.

        Files are flattened into dest_dir (-nd) and only re-downloaded when
        the remote copy is newer (-N).
        """
        cmd = [self.executable, '-r', '-nd', '-N', '-np']
        if self.quiet:
            cmd.append('--quiet')
        if accept:
            cmd += ['-A', ','.join(accept)]
        if reject:
            cmd += ['-R', ','.join(reject)]
        cmd += ['-P', str(dest_dir), url.rstrip('/') + '/']
        return self._run(cmd)


class UrlRetriever:
    """Plain single-file downloads through urllib."""

    def download(self, url, dest):
        logger.debug("Retrieving %s -> %s", url, dest)
        start = time.monotonic()
        try:
            urllib.request.urlretrieve(url, dest)
        except (OSError, ValueError) as e:
            return TransferResult(1, str(e), time.monotonic() - start)
        return TransferResult(0, '', time.monotonic() - start)


class EntrezClient:
    """Fetch EUtils records with Bio.Entrez."""

    def __init__(self, options=EntrezOptions()):
        Entrez.tool = options.tool
        if options.email:
            Entrez.email = options.email
        if options.api_key:
            Entrez.api_key = options.api_key

    def retrieve(self, query, dest):
        logger.debug("efetch %s", query.url)
        start = time.monotonic()
        try:
            handle = Entrez.efetch(db=query.database, id=query.id,
                                   rettype=query.rettype, retmode=query.retmode)
            try:
                data = handle.read()
            finally:
                handle.close()
        except (OSError, http.client.HTTPException) as e:
            return TransferResult(1, str(e), time.monotonic() - start)

        if isinstance(data, str):
            data = data.encode('utf-8')
        Path(dest).write_bytes(data)
        return TransferResult(0, '', time.monotonic() - start)
