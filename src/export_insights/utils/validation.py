"""
Input validation utilities for command-line arguments.

Paths handed to the report pipeline are checked before any file is
opened so that obviously bad arguments fail fast with a clear message.
"""

import re


class ValidationError(ValueError):
    """Raised when input validation fails."""
    pass


def validate_file_path(file_path: str, field_name: str = "file_path", allow_wildcards: bool = False) -> str:
    """
    Validate a file path.

    Args:
        file_path: The file path to validate
        field_name: Name of the field (for error messages)
        allow_wildcards: Whether to allow wildcards (* and ?) in the path

    Returns:
        The validated file path (stripped of whitespace)

    Raises:
        ValidationError: If validation fails

    Examples:
        >>> validate_file_path("/data/orders.jsonl")
        '/data/orders.jsonl'
        >>> validate_file_path("../../../etc/passwd")  # doctest: +SKIP
        ValidationError: file_path contains path traversal characters
    """
    if not file_path or not isinstance(file_path, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    file_path = file_path.strip()

    if not file_path:
        raise ValidationError(f"{field_name} cannot be empty or whitespace-only")

    if ".." in file_path:
        raise ValidationError(f"{field_name} contains path traversal characters (..)")

    if "\x00" in file_path:
        raise ValidationError(f"{field_name} contains null bytes")

    if not allow_wildcards and ("*" in file_path or "?" in file_path):
        raise ValidationError(
            f"{field_name} contains wildcards (* or ?). "
            "If this is intentional, set allow_wildcards=True."
        )

    if len(file_path) > 4096:  # Linux PATH_MAX
        raise ValidationError(f"{field_name} exceeds maximum length of 4096 characters")

    return file_path


def validate_report_type(report_type: str, known: list[str], field_name: str = "report_type") -> str:
    """
    Validate a report type against the registered report names.

    Raises:
        ValidationError: If the name is malformed or not registered
    """
    if not report_type or not isinstance(report_type, str):
        raise ValidationError(f"{field_name} must be a non-empty string")

    report_type = report_type.strip().lower()

    if not re.match(r"^[a-z_]+$", report_type):
        raise ValidationError(f"{field_name} may only contain lowercase letters and underscores")

    if report_type not in known:
        raise ValidationError(
            f"Unknown {field_name} '{report_type}'. Available: {', '.join(sorted(known))}"
        )

    return report_type
