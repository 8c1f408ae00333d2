"""Tests for interactive prompts."""

from unittest.mock import patch

import pytest

from ownkit.config import InstallConfig
from ownkit.prompts import (
    ALL_CATEGORIES,
    confirm_dependency_install,
    confirm_overwrite,
    confirm_project_layout,
    is_interactive,
    select_components_interactive,
)


class TestTTYGuards:
    def test_prompts_require_tty(self, registry):
        with patch("sys.stdin.isatty", return_value=False):
            with pytest.raises(RuntimeError, match="requires a TTY"):
                confirm_overwrite(registry.get_component("input"))
            with pytest.raises(RuntimeError):
                select_components_interactive(registry, InstallConfig())
            with pytest.raises(RuntimeError):
                confirm_dependency_install(["zod"], "npm install zod")

    def test_is_interactive_needs_both_streams(self):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("sys.stdout.isatty", return_value=False):
                assert not is_interactive()


class TestConfirmOverwrite:
    def test_answer_is_returned(self, registry):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("questionary.confirm") as mock_confirm:
                mock_confirm.return_value.ask.return_value = True
                assert confirm_overwrite(registry.get_component("input"))

                message = mock_confirm.call_args.args[0]
                assert "Input (input) is already installed" in message
                assert mock_confirm.call_args.kwargs["default"] is False

    def test_cancel_means_no(self, registry):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("questionary.confirm") as mock_confirm:
                mock_confirm.return_value.ask.side_effect = KeyboardInterrupt
                assert confirm_overwrite(registry.get_component("input")) is False


class TestSelectComponents:
    """Tests for the two-step component picker."""

    def test_category_then_components(self, registry):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("questionary.select") as mock_select, patch("questionary.checkbox") as mock_cb:
                mock_select.return_value.ask.return_value = "layout"
                mock_cb.return_value.ask.return_value = ["alpha"]

                assert select_components_interactive(registry, InstallConfig()) == ["alpha"]

                category_values = [c.value for c in mock_select.call_args.kwargs["choices"]]
                assert category_values == [ALL_CATEGORIES, "input", "layout"]
                component_values = [c.value for c in mock_cb.call_args.kwargs["choices"]]
                assert component_values == ["alpha", "beta"]

    def test_all_components(self, registry):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("questionary.select") as mock_select, patch("questionary.checkbox") as mock_cb:
                mock_select.return_value.ask.return_value = ALL_CATEGORIES
                mock_cb.return_value.ask.return_value = []

                assert select_components_interactive(registry, InstallConfig()) == []
                assert len(mock_cb.call_args.kwargs["choices"]) == len(registry.components)

    def test_cancelled_category(self, registry):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("questionary.select") as mock_select, patch("questionary.checkbox") as mock_cb:
                mock_select.return_value.ask.return_value = None
                assert select_components_interactive(registry, InstallConfig()) is None
                mock_cb.assert_not_called()


class TestConfirmProjectLayout:
    def test_returns_both_answers(self):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("questionary.confirm") as mock_confirm:
                mock_confirm.return_value.ask.side_effect = [False, True]
                assert confirm_project_layout(True, False) == (False, True)

    def test_cancel(self):
        with patch("sys.stdin.isatty", return_value=True):
            with patch("questionary.confirm") as mock_confirm:
                mock_confirm.return_value.ask.return_value = None
                assert confirm_project_layout(True, False) is None
