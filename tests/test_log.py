"""Tests for the setup logger."""

import re

from macsetup.log import SetupLogger

LINE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - (.*)$")


class TestSetupLogger:
    """Test SetupLogger output."""

    def test_file_format(self, temp_home):
        log_file = temp_home / "setup.log"
        log = SetupLogger(log_file, quiet=True)
        log.log("plain message")
        log.close()

        lines = log_file.read_text().splitlines()
        assert len(lines) == 1
        match = LINE.match(lines[0])
        assert match is not None
        assert match.group(1) == "plain message"

    def test_markers(self, temp_home):
        log_file = temp_home / "setup.log"
        log = SetupLogger(log_file, quiet=True)
        log.success("done")
        log.error("broken")
        log.info("info")
        log.warning("careful")
        log.skip("Install Homebrew")
        log.close()

        messages = [
            LINE.match(line).group(1) for line in log_file.read_text().splitlines()
        ]
        assert messages == [
            "✓ done",
            "✗ broken",
            "info",
            "careful",
            "Skipped: Install Homebrew",
        ]

    def test_appends_across_instances(self, temp_home):
        log_file = temp_home / "setup.log"
        first = SetupLogger(log_file, quiet=True)
        first.log("one")
        first.close()
        second = SetupLogger(log_file, quiet=True)
        second.log("two")
        second.close()

        assert len(log_file.read_text().splitlines()) == 2

    def test_echoes_to_terminal(self, temp_home, capsys):
        log = SetupLogger(temp_home / "setup.log")
        log.success("visible")
        log.close()

        assert "visible" in capsys.readouterr().out

    def test_quiet_suppresses_terminal(self, temp_home, capsys):
        log = SetupLogger(temp_home / "setup.log", quiet=True)
        log.success("hidden")
        log.close()

        assert capsys.readouterr().out == ""

    def test_unwritable_log_file(self, temp_home, capsys):
        blocker = temp_home / "blocker"
        blocker.write_text("file, not a directory")

        log = SetupLogger(blocker / "setup.log")
        log.log("still works")
        log.close()

        captured = capsys.readouterr()
        assert "cannot write log file" in captured.err
        assert "still works" in captured.out

    def test_without_file(self, capsys):
        log = SetupLogger()
        log.info("terminal only")
        assert "terminal only" in capsys.readouterr().out
