"""Error types and message formatting for ownkit.

Error Style Guide:
- User-facing errors use 'Error: ' prefix
- Field errors use structured format: '<entity> field '<field>' <issue>'
- Use present tense: 'must be', 'is required'
- Every fatal error carries a concrete next command as its hint
"""


class OwnkitError(Exception):
    """Base class for errors that abort an ownkit command."""

    hint: str | None = None


class ConfigError(OwnkitError):
    """Raised when a JSON-ish document cannot be read or parsed.

    Provides detailed error messages including line numbers,
    column positions, and caret indicators for syntax errors.
    """


class RegistryError(ConfigError):
    """Raised when the registry document is malformed."""


class ConfigNotInitializedError(OwnkitError):
    """Raised when ownkit.json is missing from the project."""

    def __init__(self, project_root):
        super().__init__(f"ownkit.json not found in {project_root}")
        self.project_root = project_root
        self.hint = "run 'ownkit init' first"


class ComponentNotFoundError(OwnkitError):
    """Raised when a requested component name cannot be matched."""

    def __init__(self, name: str, suggestions: list[str] | None = None):
        super().__init__(f"component '{name}' not found")
        self.name = name
        self.suggestions = suggestions or []
        self.hint = "run 'ownkit list' to see available components"


class LibModuleNotFoundError(OwnkitError):
    """Raised when a lib module name is not in the registry."""

    def __init__(self, name: str, required_by: str | None = None):
        message = f"lib module '{name}' not found in registry"
        if required_by:
            message += f" (required by {required_by})"
        super().__init__(message)
        self.name = name
        self.required_by = required_by


class SourceFileMissingError(OwnkitError):
    """Raised when a registry file mapping points at a missing source."""

    def __init__(self, source: str):
        super().__init__(f"source file not found: {source}")
        self.source = source


class TransformError(OwnkitError):
    """Raised when transforming a single file fails."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"failed to transform {source}: {reason}")
        self.source = source
        self.reason = reason


def format_error(message: str) -> str:
    """Format an error message with consistent prefix.

    Examples:
        >>> format_error("component 'foo' not found")
        "Error: component 'foo' not found"
    """
    return f"Error: {message}"


def format_field_error(entity: str, field: str, issue: str) -> str:
    """Format a field validation error with structured format.

    Examples:
        >>> format_field_error("Component 'input'", "files", "must be an array")
        "Component 'input' field 'files' must be an array"
    """
    return f"{entity} field '{field}' {issue}"


def format_suggestion(message: str, suggestion: str) -> str:
    """Format an error message with a helpful suggestion.

    Examples:
        >>> format_suggestion("ownkit.json not found", "run 'ownkit init' first")
        "Error: ownkit.json not found. Hint: run 'ownkit init' first"
    """
    return f"{format_error(message)}. Hint: {suggestion}"


def describe(error: OwnkitError) -> str:
    """Render an ownkit error the way commands print it."""
    if error.hint:
        return format_suggestion(str(error), error.hint)
    return format_error(str(error))


__all__ = [
    "OwnkitError",
    "ConfigError",
    "RegistryError",
    "ConfigNotInitializedError",
    "ComponentNotFoundError",
    "LibModuleNotFoundError",
    "SourceFileMissingError",
    "TransformError",
    "format_error",
    "format_field_error",
    "format_suggestion",
    "describe",
]
