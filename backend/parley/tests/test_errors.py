"""
Tests for the error taxonomy.
"""
import pytest

from parley.core import errors
from parley.core.errors import AppError, ErrorKind


@pytest.mark.parametrize("error_class,status_code", [
    (errors.BadRequestError, 400),
    (errors.UnauthorizedError, 401),
    (errors.ForbiddenError, 403),
    (errors.NotFoundError, 404),
    (errors.ConflictError, 409),
    (errors.ServiceUnavailableError, 503),
])
def test_status_codes(error_class, status_code):
    error = error_class("boom")
    assert error.status_code == status_code
    assert error.message == "boom"


def test_base_error_is_internal():
    error = AppError()
    assert error.kind == ErrorKind.INTERNAL
    assert error.status_code == 500
    assert error.message == "Internal server error"
    assert not hasattr(errors, "InternalError")
