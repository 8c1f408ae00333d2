"""Interactive prompts for the add, init and fix commands.

- questionary for rich interactive prompts
- TTY guards before all interactive prompts; callers fall back to
  non-interactive behavior when is_interactive() is False
"""

import sys

import questionary
from prompt_toolkit.styles import Style

from .config import InstallConfig
from .registry import ComponentEntry, Registry

ALL_CATEGORIES = "__all__"

_STYLE = Style(
    [
        ("installed", "fg:ansigreen"),
        ("available", ""),
        ("muted", "fg:ansibrightblack"),
    ]
)


def is_interactive() -> bool:
    return sys.stdin.isatty() and sys.stdout.isatty()


def _require_tty(what: str) -> None:
    if not sys.stdin.isatty():
        raise RuntimeError(f"{what} requires a TTY")


def confirm_overwrite(component: ComponentEntry) -> bool:
    """Ask whether an already-installed component should be replaced.

    Cancelling (Ctrl-C) counts as "no".

    Raises:
        RuntimeError: If not running in a TTY
    """
    _require_tty("Overwrite confirmation")
    try:
        answer = questionary.confirm(
            f"{component.title} ({component.name}) is already installed. Overwrite your copy?",
            default=False,
        ).ask()
    except KeyboardInterrupt:
        return False
    return bool(answer)


def _component_choice(component: ComponentEntry, config: InstallConfig) -> questionary.Choice:
    if config.is_component_installed(component.name):
        title = [("class:installed", f"{component.title} ({component.name})  ✓ installed")]
    else:
        title = [
            ("class:available", f"{component.title} ({component.name})"),
            ("class:muted", f"  {component.description}"),
        ]
    return questionary.Choice(title=title, value=component.name)


def select_components_interactive(registry: Registry, config: InstallConfig) -> list[str] | None:
    """Two-step picker: a category, then components from it.

    Returns:
        Selected component names (possibly empty), or None if the user
        cancels.

    Raises:
        RuntimeError: If not running in a TTY
    """
    _require_tty("Interactive component selector")

    category_choices = [questionary.Choice(title="All components", value=ALL_CATEGORIES)]
    for category in registry.categories:
        count = len(registry.components_in_category(category.name))
        if count:
            category_choices.append(
                questionary.Choice(title=f"{category.title} ({count})", value=category.name)
            )

    try:
        category = questionary.select(
            "Choose a category:",
            choices=category_choices,
            style=_STYLE,
        ).ask()
    except KeyboardInterrupt:
        return None
    if category is None:
        return None

    if category == ALL_CATEGORIES:
        components = registry.components
    else:
        components = registry.components_in_category(category)

    try:
        selected = questionary.checkbox(
            "Select components to add:",
            choices=[_component_choice(c, config) for c in components],
            instruction="Space to toggle, Enter to confirm",
            style=_STYLE,
        ).ask()
    except KeyboardInterrupt:
        return None
    return selected


def confirm_dependency_install(packages: list[str], command: str) -> bool:
    """Ask before running the package manager for missing npm packages.

    Raises:
        RuntimeError: If not running in a TTY
    """
    _require_tty("Dependency install confirmation")
    try:
        answer = questionary.confirm(
            f"Install {len(packages)} missing package(s) with '{command}'?",
            default=True,
        ).ask()
    except KeyboardInterrupt:
        return False
    return bool(answer)


def confirm_fixes(file_count: int) -> bool:
    """Ask before fix rewrites files in place.

    Raises:
        RuntimeError: If not running in a TTY
    """
    _require_tty("Fix confirmation")
    try:
        answer = questionary.confirm(f"Apply fixes to {file_count} file(s)?", default=True).ask()
    except KeyboardInterrupt:
        return False
    return bool(answer)


def confirm_project_layout(tsx: bool, src_dir: bool) -> tuple[bool, bool] | None:
    """Confirm the detected layout for 'ownkit init'.

    Returns:
        (tsx, src_dir), or None if the user cancels.

    Raises:
        RuntimeError: If not running in a TTY
    """
    _require_tty("Project layout prompt")
    try:
        use_tsx = questionary.confirm("Install TypeScript (.tsx/.ts) files?", default=tsx).ask()
        if use_tsx is None:
            return None
        use_src = questionary.confirm("Does the project keep its code under src/?", default=src_dir).ask()
    except KeyboardInterrupt:
        return None
    if use_src is None:
        return None
    return use_tsx, use_src


__all__ = [
    "is_interactive",
    "confirm_overwrite",
    "confirm_project_layout",
    "select_components_interactive",
    "confirm_dependency_install",
    "confirm_fixes",
]
