"""
Input validation for codesync command-line arguments.

Checks project ids and component names before any remote call is made.
"""

import re

_PROJECT_ID = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------------------------------------------------------------------------
# Error message formatting helpers
# ---------------------------------------------------------------------------


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Project id")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_project_id(project_id: str) -> tuple[bool, str]:
    """
    Validate a project id.

    Args:
        project_id: The project id to validate

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Letters, digits, '-' and '_' only
    """
    if not project_id or not project_id.strip():
        return (
            False,
            format_validation_error("Project id", "cannot be empty"),
        )

    if not _PROJECT_ID.match(project_id):
        return (
            False,
            format_validation_error(
                f"Project id '{project_id}'",
                "may only contain letters, digits, '-' and '_'",
            ),
        )

    return (True, "")


def validate_component_ref(ref: str) -> tuple[bool, str]:
    """
    Validate a component id or name passed via ``--components``.

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not ref or not ref.strip():
        return (
            False,
            format_validation_error("Component name", "cannot be empty"),
        )
    if ref != ref.strip():
        return (
            False,
            format_validation_error(
                f"Component name '{ref}'",
                "cannot have leading or trailing whitespace",
            ),
        )
    return (True, "")
