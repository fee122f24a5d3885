"""Tests for the gum-backed prompter."""

from unittest.mock import patch

from macsetup.core import CommandResult
from macsetup.ui import MENU_HEIGHT, GumUI


def _result(returncode=0, output=""):
    return CommandResult(["gum"], returncode, output)


class TestGumUI:
    """Test the gum command lines and answer parsing."""

    def setup_method(self):
        self.ui = GumUI()

    @patch("macsetup.ui.run_command")
    def test_confirm(self, mock_run):
        mock_run.return_value = _result(0)
        assert self.ui.confirm("Proceed?") is True
        mock_run.assert_called_once_with(
            ["gum", "confirm", "Proceed?"], merge_stderr=False
        )

        mock_run.return_value = _result(1)
        assert self.ui.confirm("Proceed?") is False

    @patch("macsetup.ui.run_command")
    def test_input(self, mock_run):
        mock_run.return_value = _result(0, "git@example.com:me/dots.git\n")

        assert self.ui.input("Repository URL") == "git@example.com:me/dots.git"
        args = mock_run.call_args[0][0]
        assert args == ["gum", "input", "--placeholder", "Repository URL"]

    @patch("macsetup.ui.run_command")
    def test_input_cancelled(self, mock_run):
        mock_run.return_value = _result(130, "")
        assert self.ui.input("Repository URL") == ""

    @patch("macsetup.ui.run_command")
    def test_choose(self, mock_run):
        mock_run.return_value = _result(0, "Show Status\n")

        choice = self.ui.choose(["Install", "Show Status"], header="Pick one")

        assert choice == "Show Status"
        args = mock_run.call_args[0][0]
        assert args == [
            "gum",
            "choose",
            "--header",
            "Pick one",
            "Install",
            "Show Status",
        ]

    @patch("macsetup.ui.run_command")
    def test_choose_cancelled(self, mock_run):
        mock_run.return_value = _result(130, "")
        assert self.ui.choose(["a", "b"]) is None

    @patch("macsetup.ui.run_command")
    def test_choose_many(self, mock_run):
        mock_run.return_value = _result(0, "a - first\n\nb - second\n")

        chosen = self.ui.choose_many(
            ["a - first", "b - second", "c - third"],
            selected=["a - first", "b - second"],
            header="Select",
        )

        assert chosen == ["a - first", "b - second"]
        args = mock_run.call_args[0][0]
        assert args[:4] == [
            "gum",
            "choose",
            "--no-limit",
            f"--height={MENU_HEIGHT}",
        ]
        assert "--selected=a - first,b - second" in args
        assert args[-3:] == ["a - first", "b - second", "c - third"]

    @patch("macsetup.ui.run_command")
    def test_choose_many_without_preselection(self, mock_run):
        mock_run.return_value = _result(0, "")

        assert self.ui.choose_many(["a", "b"]) == []
        args = mock_run.call_args[0][0]
        assert not any(arg.startswith("--selected") for arg in args)

    def test_custom_executable(self):
        with patch("macsetup.ui.run_command", return_value=_result(0)) as mock_run:
            GumUI("/opt/homebrew/bin/gum").confirm("Ok?")
        assert mock_run.call_args[0][0][0] == "/opt/homebrew/bin/gum"
