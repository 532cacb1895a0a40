import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .assembly import AssemblyDownloader
from .config import (
    ALL_ACCESSIONS,
    DEFAULT_CACHE_DIR,
    DEFAULT_DATABASE,
    DEFAULT_FILES,
    DEFAULT_RETMODE,
    DEFAULT_RETTYPE,
    DEFAULT_SOURCE,
    MANIFEST_MAX_AGE_DAYS,
    NCBI_API_KEY,
    NCBI_EMAIL,
    PLASTID_LIST_FILE,
    PLASTID_LIST_URL,
    PLASTID_TAXID,
    SOURCES,
    AssemblyOptions,
    EfetchOptions,
    EntrezOptions,
    split_file_list,
)
from .efetch import RecordFetcher
from .errors import ConfigError, NcbiFetchError
from .manifest import ManifestCache, load_accessions
from .plastids import fetch_all, make_batch_dir
from .transfer import EntrezClient, UrlRetriever, Wget
from .utils import check_dependencies


def make_transport(options):
    """Build the efetch transport named in the options."""
    if options.transport == 'wget':
        if not check_dependencies(['wget']):
            raise ConfigError("wget transport requested but wget is not installed")
        return Wget()
    return EntrezClient(options.entrez)


def efetch_options(args, output_dir):
    return EfetchOptions(
        output_dir=Path(output_dir),
        transport=args.transport,
        entrez=EntrezOptions(email=args.email, api_key=args.api_key),
    )


def assembly_options(args):
    files = split_file_list(args.files)
    if not files:
        raise ConfigError("--files needs at least one file type")
    accessions = None if args.accessions == ALL_ACCESSIONS else args.accessions

    return AssemblyOptions(
        source=args.source,
        accessions=accessions,
        files=files,
        list_only=args.list,
        header=not args.no_header,
        check_md5=args.check,
        unzip=args.unzip,
        name_prefix=args.name_prefix,
        output_dir=Path(args.output),
        cache_dir=Path(args.cache_dir),
        max_age_days=args.max_age,
        continue_on_row_failure=not args.strict,
        debug=args.debug,
    )


def handle_efetch(args):
    options = efetch_options(args, args.output)
    fetcher = RecordFetcher(make_transport(options), options.output_dir)
    result = fetcher.fetch_and_report(args.id, args.database, args.rettype,
                                      args.retmode)
    return 0 if result.ok else 1


def handle_plastids(args):
    batch_dir = make_batch_dir(args.output)
    options = efetch_options(args, batch_dir)
    fetcher = RecordFetcher(make_transport(options), options.output_dir)
    list_url = args.url or PLASTID_LIST_URL.format(taxid=args.taxid)

    stats = fetch_all(list_url, fetcher, UrlRetriever(),
                      list_file=batch_dir / PLASTID_LIST_FILE)
    print(f"  ok: {stats['ok']}  EMPTY: {stats['EMPTY']}  FAIL: {stats['FAIL']}")
    return 0


def handle_assemblies(args):
    options = assembly_options(args)

    # Read the filter first so a bad path fails before any download
    accessions = None
    if options.accessions is not None:
        accessions = load_accessions(options.accessions)

    if not options.list_only and not check_dependencies(['wget']):
        return 1

    cache = ManifestCache(options.manifest_url, options.manifest_path,
                          UrlRetriever(), options.max_age_days)
    manifest = cache.ensure()

    downloader = AssemblyDownloader(manifest, options, accessions,
                                    wget=Wget(quiet=not options.debug))
    if options.list_only:
        downloader.list_rows()
    else:
        downloader.download()
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog='ncbi-fetch',
        description='Download sequence records and genome assemblies from NCBI')
    parser.add_argument('-V', '--version', action='version',
                        version=f'%(prog)s {__version__}')
    parser.add_argument('-d', '--debug', action='store_true',
                        help='Verbose diagnostic output')
    subparsers = parser.add_subparsers(dest='command', required=True)

    # Accepted after the sub-command too; SUPPRESS keeps a top-level -d intact
    common_parser = argparse.ArgumentParser(add_help=False)
    common_parser.add_argument('-d', '--debug', action='store_true',
                               default=argparse.SUPPRESS,
                               help='Verbose diagnostic output')

    # Entrez arguments shared by efetch and plastids
    entrez_parser = argparse.ArgumentParser(add_help=False)
    entrez_parser.add_argument('-e', '--email', default=NCBI_EMAIL,
                               help='Contact e-mail for NCBI Entrez (default: $NCBI_EMAIL)')
    entrez_parser.add_argument('--api-key', default=NCBI_API_KEY,
                               help='NCBI API key (default: $NCBI_API_KEY)')
    entrez_parser.add_argument('--transport', choices=['entrez', 'wget'],
                               default='entrez',
                               help='How to call efetch (default: entrez)')

    # efetch
    parser_efetch = subparsers.add_parser(
        'efetch', parents=[common_parser, entrez_parser],
        help='Fetch a single record to <id>.<rettype[:2]>')
    parser_efetch.add_argument('id', help='Record identifier / accession')
    parser_efetch.add_argument('database', nargs='?', default=DEFAULT_DATABASE,
                               help=f'Entrez database (default: {DEFAULT_DATABASE})')
    parser_efetch.add_argument('rettype', nargs='?', default=DEFAULT_RETTYPE,
                               help=f'Return type (default: {DEFAULT_RETTYPE})')
    parser_efetch.add_argument('retmode', nargs='?', default=DEFAULT_RETMODE,
                               help=f'Return mode (default: {DEFAULT_RETMODE})')
    parser_efetch.add_argument('-o', '--output', default='.', help='Output directory')
    parser_efetch.set_defaults(func=handle_efetch)

    # plastids
    parser_plastids = subparsers.add_parser(
        'plastids', parents=[common_parser, entrez_parser],
        help='Download all plastid genomes as FASTA and GenBank')
    parser_plastids.add_argument('--url', help='Accession list URL (overrides --taxid)')
    parser_plastids.add_argument('--taxid', type=int, default=PLASTID_TAXID,
                                 help=f'Taxon of the plastid list (default: {PLASTID_TAXID})')
    parser_plastids.add_argument('-o', '--output', default='.',
                                 help='Base directory for plastids-YYYYMMDD')
    parser_plastids.set_defaults(func=handle_plastids)

    # assemblies
    parser_asm = subparsers.add_parser(
        'assemblies', parents=[common_parser],
        help='List or download assemblies from the assembly summary')
    parser_asm.add_argument('-s', '--source', choices=SOURCES, default=DEFAULT_SOURCE,
                            help=f'Assembly summary to use (default: {DEFAULT_SOURCE})')
    parser_asm.add_argument('-a', '--accessions', required=True,
                            help=f"File with one accession per line, '-' for stdin, "
                                 f"or '{ALL_ACCESSIONS}'")
    parser_asm.add_argument('-f', '--files', default=DEFAULT_FILES,
                            help='Comma separated file name substrings to download '
                                 f'(default: {DEFAULT_FILES})')
    parser_asm.add_argument('-l', '--list', action='store_true',
                            help='Print matching summary rows instead of downloading')
    parser_asm.add_argument('--no-header', action='store_true',
                            help='Omit the column header in list mode')
    parser_asm.add_argument('-c', '--check', action='store_true',
                            help='Verify downloads against md5checksums.txt')
    parser_asm.add_argument('-u', '--unzip', action='store_true',
                            help='Extract downloaded .gz files')
    parser_asm.add_argument('-n', '--name-prefix', action='store_true',
                            help='Prefix output directories with the organism name')
    parser_asm.add_argument('-o', '--output', default='.', help='Output directory')
    parser_asm.add_argument('--cache-dir', default=str(DEFAULT_CACHE_DIR),
                            help=f'Assembly summary cache (default: {DEFAULT_CACHE_DIR})')
    parser_asm.add_argument('--max-age', type=float, default=MANIFEST_MAX_AGE_DAYS,
                            help='Refresh the cached summary after this many days '
                                 f'(default: {MANIFEST_MAX_AGE_DAYS})')
    parser_asm.add_argument('--strict', action='store_true',
                            help='Abort on the first failed assembly download')
    parser_asm.set_defaults(func=handle_assemblies)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s')

    try:
        code = args.func(args)
    except NcbiFetchError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == '__main__':
    main()
