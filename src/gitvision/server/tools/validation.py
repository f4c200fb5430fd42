"""Validation helpers for MCP tool parameters.

Each helper raises ValidationError with a message that names the parameter
and, where there is one, the accepted range or options.
"""

from collections.abc import Sequence

from gitvision.server.errors import ValidationError

# Formats accepted by the documentation tools
VALID_DOC_FORMATS = ["markdown", "html", "text"]

# Search strings longer than this are rejected before touching history
SEARCH_STRING_MAX_LENGTH = 1000


def validate_required(value: str | None, param_name: str) -> str:
    """Validate a string argument is present and not blank.

    Args:
        value: Argument value
        param_name: Parameter name for error message

    Returns:
        The value, unchanged

    Raises:
        ValidationError: If value is None, not a string, or blank
    """
    if value is None:
        raise ValidationError(f"{param_name} is required")
    if not isinstance(value, str):
        raise ValidationError(
            f"{param_name} must be a string, got {type(value).__name__}"
        )
    if not value.strip():
        raise ValidationError(f"{param_name} cannot be empty")
    return value


def validate_positive_int(
    value: int, param_name: str, max_val: int | None = None
) -> None:
    """Validate integer is positive (and optionally within max).

    Args:
        value: Value to validate
        param_name: Parameter name for error message
        max_val: Optional maximum value

    Raises:
        ValidationError: If value is not positive or exceeds max
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(
            f"{param_name} must be an integer, got {type(value).__name__}"
        )
    if value < 1:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    if max_val is not None and value > max_val:
        raise ValidationError(
            f"{param_name} {value} exceeds maximum of {max_val}"
        )


def validate_search_string(search_string: str | None) -> str:
    """Validate a history search string.

    The empty string is allowed and matches every commit.

    Raises:
        ValidationError: If missing, not a string, or too long
    """
    if search_string is None:
        raise ValidationError("search_string is required")
    if not isinstance(search_string, str):
        raise ValidationError(
            f"search_string must be a string, got {type(search_string).__name__}"
        )
    if len(search_string) > SEARCH_STRING_MAX_LENGTH:
        raise ValidationError(
            f"search_string too long ({len(search_string)} chars). "
            f"Maximum: {SEARCH_STRING_MAX_LENGTH} characters"
        )
    return search_string


def validate_doc_format(fmt: str) -> str:
    """Validate and normalize a documentation format name.

    Raises:
        ValidationError: If the format is not supported
    """
    normalized = fmt.lower().strip() if isinstance(fmt, str) else ""
    if normalized not in VALID_DOC_FORMATS:
        raise ValidationError(
            f"Invalid format '{fmt}'. "
            f"Valid options: {', '.join(VALID_DOC_FORMATS)}"
        )
    return normalized


def validate_file_list(files: Sequence[str] | None) -> list[str] | None:
    """Validate an optional list of repository-relative file paths.

    Raises:
        ValidationError: If files is not a list of non-empty strings
    """
    if files is None:
        return None
    if isinstance(files, str) or not isinstance(files, Sequence):
        raise ValidationError(
            f"files must be a list of paths, got {type(files).__name__}"
        )
    for i, path in enumerate(files):
        if not isinstance(path, str) or not path.strip():
            raise ValidationError(f"File at index {i} must be a non-empty string")
    return list(files)
