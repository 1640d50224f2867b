import logging
import sys
import os

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import main


def write_csv(tmp_path, *rows):
    csv_file = tmp_path / "transactions.csv"
    csv_file.write_text('\n'.join(("type, client, tx, amount",) + rows))
    return str(csv_file)


class TestMain:
    def test_prints_snapshots(self, tmp_path, capsys):
        csv_file = write_csv(
            tmp_path,
            "deposit, 2, 1, 2.0",
            "deposit, 1, 2, 1.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )

        assert main.main([csv_file]) == 0

        captured = capsys.readouterr()
        assert captured.out == (
            "client,available,held,total,locked\n"
            "2,2.0000,0.0000,2.0000,false\n"
            "1,1.5000,0.0000,1.5000,false\n"
        )
        assert "Processed: 4, Skipped: 1, Malformed: 0" in captured.err

    def test_locked_account_output(self, tmp_path, capsys):
        csv_file = write_csv(
            tmp_path,
            "deposit, 2, 10, 20",
            "dispute, 2, 10,",
            "chargeback, 2, 10,",
            "deposit, 2, 11, 5",
        )

        assert main.main([csv_file]) == 0
        assert capsys.readouterr().out.splitlines()[1] == "2,0.0000,0.0000,0.0000,true"

    def test_malformed_rows_are_skipped(self, tmp_path, capsys):
        csv_file = write_csv(tmp_path, "deposit, 1, 1, 3", "deposit, 1")

        assert main.main([csv_file]) == 0

        captured = capsys.readouterr()
        assert captured.out.splitlines()[1] == "1,3.0000,0.0000,3.0000,false"
        assert "Malformed: 1" in captured.err

    def test_strict_fails_on_malformed_row(self, tmp_path, capsys):
        csv_file = write_csv(tmp_path, "deposit, 1, 1, 3", "deposit, 1")

        assert main.main([csv_file, "--strict"]) == 1
        assert capsys.readouterr().out == ""

    def test_missing_file(self, tmp_path, capsys):
        assert main.main([str(tmp_path / "missing.csv")]) == 1
        assert capsys.readouterr().out == ""

    def test_requires_input_argument(self):
        with pytest.raises(SystemExit) as excinfo:
            main.main([])
        assert excinfo.value.code == 2

    def test_oversized_amount_is_skipped(self, tmp_path, capsys):
        csv_file = write_csv(
            tmp_path,
            "deposit, 1, 1, 5",
            "deposit, 1, 2, 123456789012345678901234567.5",
        )

        assert main.main([csv_file]) == 0

        captured = capsys.readouterr()
        assert captured.out.splitlines()[1] == "1,5.0000,0.0000,5.0000,false"
        assert "Malformed: 1" in captured.err

    def test_log_level_from_environment(self, monkeypatch):
        monkeypatch.setenv(main.LOG_LEVEL_ENV, "debug")
        assert main.resolve_log_level() == logging.DEBUG

    def test_log_level_defaults_to_warning(self, monkeypatch):
        monkeypatch.delenv(main.LOG_LEVEL_ENV, raising=False)
        assert main.resolve_log_level() == logging.WARNING

    def test_unknown_log_level_falls_back_to_warning(self, monkeypatch):
        monkeypatch.setenv(main.LOG_LEVEL_ENV, "chatty")
        assert main.resolve_log_level() == logging.WARNING

    def test_configure_logging_applies_level(self, monkeypatch):
        monkeypatch.setenv(main.LOG_LEVEL_ENV, "error")
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        root.handlers = []
        try:
            main.configure_logging()
            assert root.level == logging.ERROR
        finally:
            root.handlers = saved_handlers
            root.setLevel(saved_level)
