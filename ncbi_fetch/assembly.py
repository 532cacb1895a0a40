"""
Assembly downloader

Select assemblies from the cached assembly summary by accession and either
list the matching rows or mirror each assembly's FTP directory, optionally
verifying MD5 checksums and extracting the archives.
"""

import logging
import sys
from collections import Counter
from pathlib import Path

from .config import MD5_FILE
from .errors import ManifestFormatError, TransferError
from .manifest import first_field, iter_data_lines, iter_rows, read_header
from .utils import gunzip_dir, verify_md5_file

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ['assembly_accession', 'ftp_path']

# Substrings of by-product files skipped unless asked for explicitly
DEFAULT_EXCLUDES = ['rna', 'cds']


class FileSelection:
    """
    Include / exclude wget patterns derived from file name substrings.

    'genomic.fna' also matches the rna_from_genomic and cds_from_genomic
    files, so those are rejected unless a requested entry names them.
    """

    def __init__(self, files, with_md5=False):
        self.files = list(files)
        self.include = [f"*{name}*" for name in self.files]
        if with_md5:
            self.include.append(MD5_FILE)
        self.exclude = [
            f"*{word}*" for word in DEFAULT_EXCLUDES
            if not any(word in name for name in self.files)
        ]

    def __repr__(self):
        return f"FileSelection(include={self.include}, exclude={self.exclude})"


def target_dir_name(row, name_prefix=False):
    if not name_prefix:
        return row.accession
    organism = row.organism_name.replace(' ', '_')
    return f"{organism}_{row.accession}"


class AssemblyDownloader:
    """
    Run list or get mode against a manifest file.

    Args:
        manifest_path: local assembly summary (see ManifestCache)
        options: AssemblyOptions
        accessions: set of accessions, or None to select every row
        wget: collaborator with mirror(url, dest_dir, accept, reject)
    """

    def __init__(self, manifest_path, options, accessions=None, wget=None):
        self.manifest_path = Path(manifest_path)
        self.options = options
        self.accessions = accessions
        self.wget = wget
        self.selection = FileSelection(options.files, with_md5=options.check_md5)
        self.columns, self.header_line = read_header(self.manifest_path)

    def selected(self, accession):
        return self.accessions is None or accession in self.accessions

    def list_rows(self, out=None):
        """Print the selected manifest lines unchanged, in manifest order."""
        out = out or sys.stdout
        if self.options.header:
            print(self.header_line, file=out)

        count = 0
        for line in iter_data_lines(self.manifest_path):
            if self.selected(first_field(line)):
                print(line, file=out)
                count += 1
        return count

    def download(self):
        """
        Mirror every selected assembly.

        Returns:
            Counter with 'matched', 'downloaded', 'failed' and 'skipped'
        """
        missing = [c for c in REQUIRED_COLUMNS if c not in self.columns]
        if missing:
            raise ManifestFormatError(
                f"{self.manifest_path}: missing columns {', '.join(missing)}")

        logger.debug("File selection: %r", self.selection)
        output_dir = Path(self.options.output_dir)
        stats = Counter()
        seen = set()

        for row in iter_rows(self.manifest_path, self.columns):
            if not self.selected(row.accession):
                continue
            stats['matched'] += 1
            seen.add(row.accession)

            if row.ftp_path in ('', 'na'):
                print(f"WARNING: {row.accession} has no FTP path, skipping",
                      file=sys.stderr)
                stats['skipped'] += 1
                continue

            row_dir = output_dir / target_dir_name(row, self.options.name_prefix)
            if self.download_row(row, row_dir):
                stats['downloaded'] += 1
            else:
                stats['failed'] += 1

        if self.accessions is not None:
            for accession in sorted(self.accessions - seen):
                print(f"WARNING: {accession} not found in "
                      f"{self.manifest_path.name}", file=sys.stderr)

        print(f"\nDownload complete!")
        for key in ('matched', 'downloaded', 'failed', 'skipped'):
            print(f"  {key.capitalize() + ':':<12}{stats[key]}")
        return stats

    def download_row(self, row, row_dir):
        """Download one assembly; returns False if the transfer failed."""
        print(f"{row.accession} -> {row_dir}")
        row_dir.mkdir(parents=True, exist_ok=True)

        transfer = self.wget.mirror(row.ftp_path, row_dir,
                                    accept=self.selection.include,
                                    reject=self.selection.exclude)
        if not transfer.ok:
            if not self.options.continue_on_row_failure:
                raise TransferError(
                    f"Download of {row.accession} from {row.ftp_path} failed "
                    f"(exit {transfer.returncode})", transfer)
            print(f"   FAILED: {row.accession} (exit {transfer.returncode})",
                  file=sys.stderr)
            return False

        if self.options.check_md5:
            md5_file = row_dir / MD5_FILE
            if md5_file.exists():
                n = verify_md5_file(md5_file)
                print(f"   md5: {n} files OK")
            else:
                print(f"   WARNING: no {MD5_FILE} for {row.accession}",
                      file=sys.stderr)

        if self.options.unzip:
            extracted = gunzip_dir(row_dir)
            print(f"   extracted {len(extracted)} files")

        return True
