"""Tests for the Homebrew and gum prerequisite gates."""

import io
from unittest.mock import Mock, patch

import pytest

from macsetup.catalog import InstallKind
from macsetup.core import CommandResult
from macsetup.exceptions import PrerequisiteError
from macsetup.prerequisites import (
    Prerequisite,
    default_prerequisites,
    setup_prerequisites,
)


def _prereq(name, present=True, install_ok=True, installs=True):
    state = {"present": present}

    def install():
        if installs:
            state["present"] = True
        return CommandResult([name], 0 if install_ok else 1)

    return Prerequisite(
        name=name,
        rationale=f"{name} is needed.",
        is_present=lambda: state["present"],
        install=Mock(side_effect=install),
        manual_command=f"install {name}",
    )


class TestSetupPrerequisites:
    """Test the prerequisite gate."""

    def test_all_present_is_silent(self, capsys):
        assert setup_prerequisites([_prereq("Homebrew"), _prereq("gum")]) is False
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == ""

    @patch("macsetup.prerequisites.typer.prompt")
    @patch("macsetup.prerequisites.typer.confirm", return_value=True)
    def test_installs_missing(self, mock_confirm, mock_prompt, capsys):
        gum = _prereq("gum", present=False)

        assert setup_prerequisites([_prereq("Homebrew"), gum]) is True

        gum.install.assert_called_once()
        mock_confirm.assert_called_once_with(
            "Would you like to install gum now?", default=False
        )
        mock_prompt.assert_called_once_with(
            "Press Enter to continue to the main setup menu...",
            default="",
            show_default=False,
        )
        out = capsys.readouterr().out
        assert "This script requires gum" in out
        assert "All prerequisites are ready!" in out

    @patch("macsetup.prerequisites.typer.confirm", return_value=True)
    def test_waits_for_enter_after_install(self, _confirm, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("\n"))
        gum = _prereq("gum", present=False)

        assert setup_prerequisites([gum]) is True

        out = capsys.readouterr().out
        assert "Press Enter to continue to the main setup menu..." in out

    @patch("macsetup.prerequisites.typer.prompt")
    @patch("macsetup.prerequisites.typer.confirm", return_value=False)
    def test_decline_raises(self, _confirm, mock_prompt, capsys):
        brew = _prereq("Homebrew", present=False)

        with pytest.raises(PrerequisiteError) as exc_info:
            setup_prerequisites([brew, _prereq("gum", present=False)])

        assert exc_info.value.tool == "Homebrew"
        brew.install.assert_not_called()
        mock_prompt.assert_not_called()
        out = capsys.readouterr().out
        assert "Homebrew is required for this setup. Exiting." in out
        assert "install Homebrew" in out

    @patch("macsetup.prerequisites.typer.prompt")
    @patch("macsetup.prerequisites.typer.confirm", return_value=True)
    def test_failed_install_raises(self, _confirm, _prompt):
        gum = _prereq("gum", present=False, install_ok=False, installs=False)

        with pytest.raises(PrerequisiteError, match="installation failed"):
            setup_prerequisites([gum])

    @patch("macsetup.prerequisites.typer.prompt")
    @patch("macsetup.prerequisites.typer.confirm", return_value=True)
    def test_install_that_does_not_land_on_path(self, _confirm, _prompt):
        gum = _prereq("gum", present=False, install_ok=True, installs=False)

        with pytest.raises(PrerequisiteError):
            setup_prerequisites([gum])

    @patch("macsetup.prerequisites.typer.prompt")
    @patch("macsetup.prerequisites.typer.confirm", return_value=True)
    def test_homebrew_checked_before_gum(self, mock_confirm, _prompt):
        setup_prerequisites(
            [_prereq("Homebrew", present=False), _prereq("gum", present=False)]
        )

        prompts = [c.args[0] for c in mock_confirm.call_args_list]
        assert prompts == [
            "Would you like to install Homebrew now?",
            "Would you like to install gum now?",
        ]


class TestDefaultPrerequisites:
    """Test the shipped gates."""

    def test_order_and_commands(self, fake_brew_factory, temp_home):
        brew = fake_brew_factory()

        prereqs = default_prerequisites(brew, temp_home)

        assert [p.name for p in prereqs] == ["Homebrew", "gum"]
        assert "install.sh" in prereqs[0].manual_command
        assert prereqs[1].manual_command == "brew install gum"

    def test_gum_installed_with_brew(self, fake_brew_factory, temp_home):
        brew = fake_brew_factory()

        default_prerequisites(brew, temp_home)[1].install()

        assert brew.install_calls == [(["gum"], InstallKind.FORMULA)]

    @patch("macsetup.prerequisites.shutil.which", return_value=None)
    def test_gum_presence_uses_path(self, _which, fake_brew_factory, temp_home):
        assert not default_prerequisites(fake_brew_factory(), temp_home)[1].is_present()
