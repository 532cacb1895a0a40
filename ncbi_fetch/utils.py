import gzip
import hashlib
import logging
import os
import shutil
import subprocess
import sys
from contextlib import contextmanager
from pathlib import Path

from .errors import ChecksumError, ExtractionError

logger = logging.getLogger(__name__)


def check_dependencies(tools):
    """Check if required tools are installed"""
    missing = []

    for tool in tools:
        try:
            subprocess.run([tool, '--version'],
                           capture_output=True,
                           check=True)
        except (subprocess.CalledProcessError, FileNotFoundError):
            missing.append(tool)

    if missing:
        print(f"ERROR: Missing required tools: {', '.join(missing)}",
              file=sys.stderr)
        return False
    return True


@contextmanager
def working_directory(path):
    """Change into path for the duration of the block."""
    previous = os.getcwd()
    os.chdir(path)
    try:
        yield Path(path)
    finally:
        os.chdir(previous)


def md5_of_file(path, block_size=2**20):
    h = hashlib.md5()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(block_size), b''):
            h.update(chunk)
    return h.hexdigest()


def parse_md5_file(md5_file):
    """
    Parse an md5sum style listing.

    Lines look like "<md5>  ./<filename>"; the leading './' is dropped.

    Returns:
        List of (filename, md5) tuples in file order
    """
    entries = []
    with open(md5_file, 'r') as f:
        for line in f:
            parts = line.split(None, 1)
            if len(parts) != 2:
                continue
            checksum, filename = parts
            filename = filename.strip().lstrip('*')
            if filename.startswith('./'):
                filename = filename[2:]
            entries.append((filename, checksum.lower()))
    return entries


def verify_md5_file(md5_file):
    """
    Verify every listed file present in the md5 file's directory.

    Files that are not present locally are skipped; the first mismatch raises
    ChecksumError.

    Returns:
        Number of files verified
    """
    md5_file = Path(md5_file)
    verified = 0
    with working_directory(md5_file.parent):
        for filename, expected in parse_md5_file(md5_file.name):
            if not Path(filename).is_file():
                continue
            observed = md5_of_file(filename)
            if observed != expected:
                raise ChecksumError(md5_file.parent / filename, expected, observed)
            logger.debug("%s: OK", filename)
            verified += 1
    return verified


def gunzip(path):
    """Decompress path.gz next to itself and remove the archive."""
    path = Path(path)
    target = path.with_suffix('')
    partial = target.with_name(target.name + '.part')
    try:
        with gzip.open(path, 'rb') as f_in:
            with open(partial, 'wb') as f_out:
                shutil.copyfileobj(f_in, f_out)
    except (OSError, EOFError) as e:
        if partial.exists():
            partial.unlink()
        raise ExtractionError(f"Cannot extract {path}: {e}")
    os.replace(partial, target)
    path.unlink()
    return target


def gunzip_dir(directory):
    """Expand every .gz archive in directory in place."""
    extracted = []
    with working_directory(directory):
        for archive in sorted(Path('.').glob('*.gz')):
            logger.debug("Extracting %s", archive)
            extracted.append(Path(directory) / gunzip(archive).name)
    return extracted
