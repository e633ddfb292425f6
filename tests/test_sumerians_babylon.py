import io
import sys
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

import sumerians_babylon
from sexagesimal import Base60, SexagesimalFormatError


def run_main(*argv: str) -> str:
    buffer = io.StringIO()
    with redirect_stdout(buffer):
        sumerians_babylon.main(list(argv))
    return buffer.getvalue()


class DriverTests(unittest.TestCase):
    def setUp(self):
        self._tmpdir = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmpdir.name)

    def tearDown(self):
        self._tmpdir.cleanup()

    def write_parfile(self, text: str) -> Path:
        parfile = self.tmp_path / "parfile"
        parfile.write_text(text)
        return parfile

    def test_sexagesimal_value(self):
        self.assertEqual(run_main("1:30"), "1:30: 1:30 → 90 → 1:30\n")

    def test_fraction_and_precision(self):
        line = run_main("--fraction", "1/7", "--precision", "3").strip()
        self.assertTrue(line.startswith("1/7: 0.8:34:17 → 0.142857"))
        self.assertTrue(line.endswith("→ 0.(8:34:17)"))

    def test_decimal_value(self):
        self.assertEqual(run_main("--decimal", "2.5"), "2.5: 2.30 → 2.5 → 2.30\n")

    def test_periodic_form_can_be_skipped(self):
        line = run_main("--no-periodic", "--precision", "3", "--fraction", "1/1000000007").strip()
        self.assertEqual(line.count("→"), 1)
        self.assertTrue(line.startswith("1/1000000007: 0 → 9.99999993"))

        parfile = self.write_parfile('show_periodic = false\nfractions = ["1/7"]\n')
        line = run_main("--parfile", str(parfile)).strip()
        self.assertEqual(line, "1/7: 0.8:34:17:8:34:17:8:34:17:8 → " + line.split(" → ")[1])
        self.assertNotIn("(", line)

    def test_malformed_decimal_reported(self):
        stderr = io.StringIO()
        with mock.patch.object(sys, "argv", ["sumerians_babylon.py", "--decimal", "abc"]):
            with redirect_stderr(stderr), redirect_stdout(io.StringIO()):
                with self.assertRaises(SystemExit):
                    sumerians_babylon.cli()
        self.assertEqual(stderr.getvalue().strip(), "Error: invalid decimal literal 'abc'")

    def test_demonstration_without_values(self):
        lines = run_main().splitlines()
        self.assertEqual(lines[0].split(" → ")[0], "2:46:58.30:15")
        self.assertTrue(lines[1].endswith("→ 0.8:34:17:8:34:17:8:34:17:8 → 0.(8:34:17)"))
        self.assertIn("1:30 + 2:15 = 3:45", lines)
        self.assertIn("90 + 135 = 225 → 3:45", lines)
        self.assertEqual(lines[-1], "-1")

    def test_parfile_settings(self):
        parfile = self.write_parfile(
            'precision = 3\nperiodic_input = true\nvalues = ["0.(8:34:17)"]\n'
            'fractions = ["1/2"]\ndecimals = [0.25]\n'
        )
        lines = run_main("--parfile", str(parfile)).splitlines()
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[0].startswith("0.(8:34:17): 0.8:34:17 → 0.142857"))
        self.assertTrue(lines[0].endswith("→ 0.(8:34:17)"))
        self.assertEqual(lines[1], "1/2: 0.30 → 0.5 → 0.30")
        self.assertEqual(lines[2], "0.25: 0.15 → 0.25 → 0.15")

    def test_example_parfile(self):
        parfile = Path(__file__).resolve().parents[1] / "Examples" / "Babylonian Tablet" / "parfile"
        settings = sumerians_babylon.load_parfile(str(parfile))
        self.assertEqual(settings.precision, 6)
        self.assertTrue(settings.periodic_input)
        lines = run_main("--parfile", str(parfile)).splitlines()
        self.assertEqual(len(lines), 8)
        self.assertEqual(lines[0], "1.24:51:10: 1.24:51:10 → 1.4142129629629629629629629629629629629629629629630 → 1.24:51:10")
        self.assertIn("1/7: 0.8:34:17:8:34:17 → ", lines[3])

    def test_command_line_overrides_parfile(self):
        parfile = self.write_parfile("precision = 1\n")
        line = run_main("--parfile", str(parfile), "--precision", "2", "--fraction", "1/7")
        self.assertTrue(line.startswith("1/7: 0.8:34 → "))

    def test_parfile_errors(self):
        with self.assertRaises(FileNotFoundError):
            run_main("--parfile", str(self.tmp_path / "missing"))
        parfile = self.write_parfile("base = 10\n")
        with self.assertRaises(ValueError):
            run_main("--parfile", str(parfile))

    def test_negative_precision_rejected(self):
        with self.assertRaises(ValueError):
            run_main("--precision", "-1", "1:30")

    def test_parse_fraction(self):
        self.assertEqual(sumerians_babylon.parse_fraction("3/6"), Base60(1, 2))
        self.assertEqual(sumerians_babylon.parse_fraction("-4"), Base60(-4))
        with self.assertRaises(SexagesimalFormatError):
            sumerians_babylon.parse_fraction("1/x")
        with self.assertRaises(ZeroDivisionError):
            sumerians_babylon.parse_fraction("1/0")

    def test_cli_reports_errors(self):
        stderr = io.StringIO()
        with mock.patch.object(sys, "argv", ["sumerians_babylon.py", "60:00"]):
            with redirect_stderr(stderr), redirect_stdout(io.StringIO()):
                with self.assertRaises(SystemExit) as ctx:
                    sumerians_babylon.cli()
        self.assertEqual(ctx.exception.code, 1)
        self.assertTrue(stderr.getvalue().startswith("Error: digit out of range"))


if __name__ == "__main__":  # pragma: no cover - direct execution helper
    unittest.main()
