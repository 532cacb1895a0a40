import http.client
import io
import sys
import tempfile
import unittest
import urllib.error
from pathlib import Path
from unittest import mock

sys.path.append(str(Path(__file__).parent.parent))

from ncbi_fetch.efetch import EfetchQuery
from ncbi_fetch.transfer import EntrezClient, Wget


def completed(returncode=0, stderr=''):
    return mock.Mock(returncode=returncode, stderr=stderr)


class TestWget(unittest.TestCase):
    def test_mirror_command_line(self):
        with mock.patch('ncbi_fetch.transfer.subprocess.run',
                        return_value=completed()) as run:
            result = Wget().mirror('ftp://x/GCA_000001', Path('out/GCA_000001'),
                                   accept=['*genomic.fna*', 'md5checksums.txt'],
                                   reject=['*rna*', '*cds*'])

        self.assertTrue(result.ok)
        self.assertEqual(run.call_args[0][0], [
            'wget', '-r', '-nd', '-N', '-np', '--quiet',
            '-A', '*genomic.fna*,md5checksums.txt',
            '-R', '*rna*,*cds*',
            '-P', str(Path('out/GCA_000001')), 'ftp://x/GCA_000001/',
        ])

    def test_mirror_without_patterns_keeps_single_slash(self):
        with mock.patch('ncbi_fetch.transfer.subprocess.run',
                        return_value=completed()) as run:
            Wget(quiet=False).mirror('https://x/GCA_000002/', 'dest')

        self.assertEqual(run.call_args[0][0], [
            'wget', '-r', '-nd', '-N', '-np', '-P', 'dest', 'https://x/GCA_000002/',
        ])

    def test_download_command_line(self):
        with mock.patch('ncbi_fetch.transfer.subprocess.run',
                        return_value=completed(8, 'ERROR 404: Not Found.')) as run:
            result = Wget().download('http://x/list.tsv', Path('accession.tsv'))

        self.assertEqual(run.call_args[0][0],
                         ['wget', '--quiet', '-O', 'accession.tsv', 'http://x/list.tsv'])
        self.assertFalse(result.ok)
        self.assertEqual(result.returncode, 8)
        self.assertIn('404', result.output)

    def test_retrieve_uses_query_url(self):
        query = EfetchQuery('NC_1', rettype='gb')
        with mock.patch('ncbi_fetch.transfer.subprocess.run',
                        return_value=completed()) as run:
            Wget().retrieve(query, 'NC_1.gb')

        self.assertEqual(run.call_args[0][0],
                         ['wget', '--quiet', '-O', 'NC_1.gb', query.url])

    def test_missing_executable(self):
        result = Wget(executable='/nonexistent/wget').download('http://x', 'out')
        self.assertEqual(result.returncode, 127)


class TestEntrezClient(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dest = Path(self.tmp.name) / 'NC_1.fa'

    def tearDown(self):
        self.tmp.cleanup()

    def test_text_response_is_written(self):
        with mock.patch('ncbi_fetch.transfer.Entrez.efetch',
                        return_value=io.StringIO('>NC_1\nACGT\n')) as efetch:
            result = EntrezClient().retrieve(EfetchQuery('NC_1'), self.dest)

        self.assertTrue(result.ok)
        self.assertEqual(self.dest.read_bytes(), b'>NC_1\nACGT\n')
        efetch.assert_called_once_with(db='nuccore', id='NC_1',
                                       rettype='fasta', retmode='text')

    def test_http_error_is_a_failed_transfer(self):
        error = urllib.error.HTTPError('http://x', 400, 'Bad Request', {}, None)
        with mock.patch('ncbi_fetch.transfer.Entrez.efetch', side_effect=error):
            result = EntrezClient().retrieve(EfetchQuery('NC_1'), self.dest)

        self.assertEqual(result.returncode, 1)
        self.assertFalse(self.dest.exists())

    def test_truncated_response_is_a_failed_transfer(self):
        handle = mock.Mock()
        handle.read.side_effect = http.client.IncompleteRead(b'>NC_1\nAC')
        with mock.patch('ncbi_fetch.transfer.Entrez.efetch', return_value=handle):
            result = EntrezClient().retrieve(EfetchQuery('NC_1'), self.dest)

        self.assertFalse(result.ok)
        handle.close.assert_called_once_with()
        self.assertFalse(self.dest.exists())


if __name__ == '__main__':
    unittest.main()
