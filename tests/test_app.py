"""
Unit tests for app.py and cli.py
"""

import io
import json
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import sys
sys.path.insert(0, str(Path(__file__).parent.parent))

from cntblank.app import Application
from cntblank.cli import build_parser, populate_dialects, main
from cntblank.dialect import Dialect, Encoding
from cntblank.writer import CsvReportWriter, JsonReportWriter


class TestApplication(unittest.TestCase):
    """Test cases for Application."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = Path(tempfile.mkdtemp())
        (self.temp_dir / 'a.csv').write_text('key,value\nA,1\nC,\n', encoding='utf-8')
        (self.temp_dir / 'b.csv').write_text('id,flag\n1,true\n2,false\n3,\n', encoding='utf-8')

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_run_directory(self):
        """Test every file of a directory gets its own report."""
        app = Application(JsonReportWriter(), show_progress=False)
        stream = io.StringIO()

        reports = app.run([self.temp_dir], Dialect(delimiter=','), stream)

        self.assertEqual([r.filename for r in reports], ['a.csv', 'b.csv'])
        self.assertEqual([r.records for r in reports], [2, 3])
        self.assertEqual(len(reports[0].md5hex), 32)
        self.assertEqual(reports[1].fields[1].true_count, 1)
        self.assertEqual(len(json.loads(stream.getvalue())), 2)

    def test_process_logs_file_size(self):
        """Test each target is logged with its size."""
        app = Application(JsonReportWriter(), show_progress=False)

        with self.assertLogs('cntblank.app', level='INFO') as logs:
            app.run([self.temp_dir / 'a.csv'], Dialect(delimiter=','), io.StringIO())

        self.assertTrue(any('a.csv (0.00 MB)' in line for line in logs.output))

    def test_failed_source_gets_empty_report(self):
        """Test a source that cannot be read does not stop the others."""
        (self.temp_dir / 'broken.xlsx').write_bytes(b'not a workbook')
        app = Application(JsonReportWriter(), show_progress=False)

        with self.assertLogs('cntblank.app', level='ERROR'):
            reports = app.run([self.temp_dir], Dialect(delimiter=','), io.StringIO())

        self.assertEqual([r.filename for r in reports], ['a.csv', 'b.csv', 'broken.xlsx'])
        self.assertEqual(reports[2].records, 0)
        self.assertEqual(reports[2].fields, [])

    def test_empty_source_gets_empty_report(self):
        """Test an empty file with a header expected."""
        (self.temp_dir / 'c.csv').write_text('', encoding='utf-8')
        app = Application(JsonReportWriter(), show_progress=False)

        with self.assertLogs('cntblank.app', level='ERROR'):
            reports = app.run([self.temp_dir / 'c.csv'], Dialect(delimiter=','), io.StringIO())

        self.assertEqual(len(reports), 1)
        self.assertEqual(reports[0].fields, [])

    def test_run_standard_input(self):
        """Test no paths reads standard input."""
        app = Application(CsvReportWriter(Dialect(delimiter=',')), show_progress=False)
        stdin = io.TextIOWrapper(io.BytesIO(b'x\n1\n\n2\n'))

        with patch('sys.stdin', stdin):
            reports = app.run([], Dialect(delimiter=','), io.StringIO())

        self.assertEqual(len(reports), 1)
        self.assertIsNone(reports[0].path)
        self.assertEqual(reports[0].records, 2)


class TestCommandLine(unittest.TestCase):
    """Test cases for the command line interface."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = Path(tempfile.mkdtemp())
        self.data_file = self.temp_dir / 'data.tsv'
        self.data_file.write_text('key\tvalue\nA\t1\nC\t\n', encoding='utf-8')

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_populate_dialects(self):
        """Test arguments map onto the input and output dialects."""
        args = build_parser().parse_args([
            '--input-delimiter', ',', '-e', 'sjis', '--without-header', '--strict',
            '--sheet', '2', '--output-delimiter', ';', '--output-meta', 'x.csv'
        ])
        in_dialect, out_dialect = populate_dialects(args)

        self.assertEqual(in_dialect.delimiter, ',')
        self.assertIs(in_dialect.encoding, Encoding.SHIFT_JIS)
        self.assertFalse(in_dialect.has_header)
        self.assertTrue(in_dialect.strict)
        self.assertEqual(in_dialect.sheet_number, 2)
        self.assertEqual(out_dialect.delimiter, ';')
        self.assertTrue(out_dialect.has_header)
        self.assertTrue(out_dialect.emit_metadata)
        self.assertEqual(args.tabfile, ['x.csv'])

    @patch('cntblank.cli.setup_logging')
    def test_main_writes_output_file(self, mock_logging):
        """Test a full run writing the report to a file."""
        output = self.temp_dir / 'report.tsv'

        code = main(['-o', str(output), '--no-progress', str(self.data_file)])

        self.assertEqual(code, 0)
        lines = output.read_text(encoding='utf-8').split('\n')
        self.assertTrue(lines[0].startswith('seq\tName\t#Blank'))
        self.assertTrue(lines[2].startswith('2\tvalue\t1\t0.5000'))

    @patch('cntblank.cli.setup_logging')
    def test_main_shift_jis_output(self, mock_logging):
        """Test the report is encoded with the output encoding."""
        self.data_file.write_text('名前\n値\n', encoding='utf-8')
        output = self.temp_dir / 'report.tsv'

        code = main(['-o', str(output), '-E', 'sjis', '--no-progress', str(self.data_file)])

        self.assertEqual(code, 0)
        self.assertIn('名前', output.read_bytes().decode('shift_jis'))

    @patch('cntblank.cli.setup_logging')
    def test_main_invalid_delimiter(self, mock_logging):
        """Test an unusable delimiter fails before reading."""
        code = main(['--input-delimiter', '"', str(self.data_file)])

        self.assertEqual(code, 1)


if __name__ == '__main__':
    unittest.main(verbosity=2)
