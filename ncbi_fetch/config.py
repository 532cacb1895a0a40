"""
Configuration for NCBI Fetch.

Remote locations, defaults and the option sets passed to each command.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

# NCBI EUtils
EUTILS_BASE = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
EFETCH_URL = f"{EUTILS_BASE}/efetch.fcgi"

DEFAULT_DATABASE = "nuccore"
DEFAULT_RETTYPE = "fasta"
DEFAULT_RETMODE = "text"

# Records smaller than this many bytes are considered empty
EMPTY_THRESHOLD = 2

# Eukaryote plastid genomes
PLASTID_TAXID = 2759
PLASTID_LIST_URL = (
    "https://www.ncbi.nlm.nih.gov/genomes/GenomesGroup.cgi"
    "?opt=plastid&taxid={taxid}&cmd=download1"
)
PLASTID_LIST_FILE = "accession.tsv"
PLASTID_RECORD_TYPES = [('fasta', 'text'), ('gb', 'text')]

# Assembly summaries
ASSEMBLY_REPORTS_BASE = "https://ftp.ncbi.nlm.nih.gov/genomes/ASSEMBLY_REPORTS"
MANIFEST_URLS = {
    'genbank': f"{ASSEMBLY_REPORTS_BASE}/assembly_summary_genbank.txt",
    'refseq': f"{ASSEMBLY_REPORTS_BASE}/assembly_summary_refseq.txt",
}
SOURCES = sorted(MANIFEST_URLS)
DEFAULT_SOURCE = 'genbank'
MANIFEST_MAX_AGE_DAYS = 1
MD5_FILE = "md5checksums.txt"
DEFAULT_FILES = "genomic.fna"
ALL_ACCESSIONS = "all"

# Environment overrides
DEFAULT_CACHE_DIR = Path(
    os.environ.get('NCBI_FETCH_CACHE', Path.home() / ".cache" / "ncbi-fetch")
)
NCBI_EMAIL = os.environ.get('NCBI_EMAIL', '')
NCBI_API_KEY = os.environ.get('NCBI_API_KEY', '')


@dataclass(frozen=True)
class EntrezOptions:
    email: str = NCBI_EMAIL
    api_key: str = NCBI_API_KEY
    tool: str = "ncbi-fetch"


@dataclass(frozen=True)
class EfetchOptions:
    """Options for single record and plastid batch fetches."""
    output_dir: Path = Path(".")
    transport: str = 'entrez'
    entrez: EntrezOptions = EntrezOptions()


@dataclass(frozen=True)
class AssemblyOptions:
    """
    Options for one run of the assembly downloader.

    accessions is None when every manifest row is selected.
    """
    source: str = DEFAULT_SOURCE
    accessions: Optional[str] = None
    files: Tuple[str, ...] = (DEFAULT_FILES,)
    list_only: bool = False
    header: bool = True
    check_md5: bool = False
    unzip: bool = False
    name_prefix: bool = False
    output_dir: Path = Path(".")
    cache_dir: Path = DEFAULT_CACHE_DIR
    max_age_days: float = MANIFEST_MAX_AGE_DAYS
    continue_on_row_failure: bool = True
    debug: bool = False

    @property
    def manifest_url(self) -> str:
        return MANIFEST_URLS[self.source]

    @property
    def manifest_path(self) -> Path:
        return Path(self.cache_dir) / f"assembly_summary_{self.source}.txt"


def split_file_list(value: str) -> Tuple[str, ...]:
    """Split a comma separated file type list, dropping empty entries."""
    return tuple(part.strip() for part in value.split(',') if part.strip())
