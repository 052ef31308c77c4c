"""Tests for command-line input validators."""

import pytest

from codesync.validators import (
    format_validation_error,
    validate_component_ref,
    validate_project_id,
)


def test_format_validation_error():
    assert format_validation_error("Project id", "cannot be empty") == (
        "Project id cannot be empty"
    )


@pytest.mark.parametrize("project_id", ["abc123", "p-1_x", "47tFXWjN2C4NyHFGGpaYQ3"])
def test_valid_project_ids(project_id):
    assert validate_project_id(project_id) == (True, "")


@pytest.mark.parametrize(
    "project_id,reason",
    [
        ("", "cannot be empty"),
        ("   ", "cannot be empty"),
        ("p1/../x", "may only contain"),
        ("p 1", "may only contain"),
    ],
)
def test_invalid_project_ids(project_id, reason):
    is_valid, error = validate_project_id(project_id)
    assert not is_valid
    assert reason in error


def test_valid_component_ref():
    assert validate_component_ref("Fancy Button") == (True, "")


@pytest.mark.parametrize("ref", ["", "  ", " Button", "Button\t"])
def test_invalid_component_ref(ref):
    is_valid, error = validate_component_ref(ref)
    assert not is_valid
    assert error.startswith("Component name")
