"""
Input Validators - Generic validation for operator input at system boundaries.

Parse at the boundary: validate question ids, justifications and pattern
ids before they reach the override store or the CLI output.
"""

import re


class ValidationError(ValueError):
    """Raised when input validation fails. Contains a user-friendly message."""

    pass


def validate_not_empty(value: str | None, field_name: str = "input") -> str:
    """Validate that a string is not empty or whitespace-only."""
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")
    return value.strip()


def validate_length(
    value: str,
    field_name: str = "input",
    min_length: int = 0,
    max_length: int = 10_000,
) -> str:
    """Validate string length is within bounds."""
    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")
    if len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value


def validate_identifier(value: str, field_name: str = "identifier") -> str:
    """Validate that a string is a safe identifier (letters, digits, underscore, hyphen, dot)."""
    if not re.match(r"^[A-Za-z0-9][A-Za-z0-9_.:-]*$", value):
        raise ValidationError(
            f"{field_name} must start with a letter or digit and contain only "
            f"letters, numbers, underscores, hyphens, dots and colons"
        )
    return value


def validate_in_choices(value: str, choices: list[str], field_name: str = "value") -> str:
    """Validate that a value is one of the allowed choices."""
    if value not in choices:
        raise ValidationError(f"{field_name} must be one of: {', '.join(choices)}")
    return value
