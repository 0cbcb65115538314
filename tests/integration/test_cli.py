"""
Tests for the rolecouple command line interface.
"""

import unittest
import os
import tempfile
import shutil
from contextlib import redirect_stderr, redirect_stdout
from io import StringIO

from rolecouple.cli import create_parser, main
from rolecouple.codec import load_tally
from tests.fixtures.sample_data import SampleData


class TestCommandLine(unittest.TestCase):
    """Test argument handling and exit behavior."""

    def setUp(self):
        self.work_dir = tempfile.mkdtemp()
        self.genome_dir = os.path.join(self.work_dir, 'genomes')
        os.mkdir(self.genome_dir)
        SampleData.write_genbank(os.path.join(self.genome_dir, '12345.6.gbk'), SampleData.FIRST_GENOME)
        self.role_file = SampleData.write_role_file(os.path.join(self.work_dir, 'roles.tbl'))
        self.coupler_file = os.path.join(self.work_dir, 'couples.tbl')

    def tearDown(self):
        shutil.rmtree(self.work_dir)

    def test_defaults(self):
        args = create_parser().parse_args(['couples.tbl'])
        self.assertEqual(args.gap, 500)
        self.assertEqual(args.min_togetherness, 0.80)
        self.assertEqual(args.min_count, 10)
        self.assertEqual(args.compare_togetherness, 0.70)
        self.assertEqual(args.compare_count, 20)
        self.assertEqual(args.genome_dirs, [])
        self.assertFalse(args.create)

    def test_create_run(self):
        stdout = StringIO()
        with redirect_stdout(stdout):
            status = main(['--create', '-R', self.role_file, '-g', '100', '-t', '0.5', '-m', '2',
                           self.coupler_file, self.genome_dir])
        self.assertEqual(status, 0)
        lines = stdout.getvalue().splitlines()
        self.assertEqual(lines[0], 'role_id1\trole_id2\tfraction\tcount')
        self.assertEqual(len(lines), 4)
        self.assertEqual(load_tally(self.coupler_file).gap, 100)

    def test_missing_coupler_file_exits(self):
        stderr = StringIO()
        with redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as ctx:
                main([self.coupler_file, self.genome_dir])
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn('Coupler file must exist', stderr.getvalue())

    def test_corrupt_coupler_file_exits(self):
        with open(self.coupler_file, 'w') as handle:
            handle.write('100\tRole-Coupling Database\ncount\trole_id\trole_name\n'
                         '1\tRole1n1\tRole 1\nrole1_id\trole2_id\tcount\ttogetherness\n'
                         'Role1n1\tRoleZn1\t1\t0.5\n')
        stderr = StringIO()
        with redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as ctx:
                main([self.coupler_file, self.genome_dir])
        self.assertEqual(ctx.exception.code, 1)
        self.assertIn('RoleZn1', stderr.getvalue())


if __name__ == '__main__':
    unittest.main()
