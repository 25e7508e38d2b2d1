import inspect
import warnings

from fastapi import status

from src.core.exceptions import BusinessLogicError, PersistenceError, SchedulingConflictError


def test_domain_errors_default_to_unprocessable_content():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        expected = status.HTTP_422_UNPROCESSABLE_CONTENT

    default = inspect.signature(BusinessLogicError).parameters["status_code"].default
    assert default == expected == 422
    assert BusinessLogicError("Technician is inactive").status_code == 422


def test_conflict_and_persistence_errors_carry_their_status():
    conflict = SchedulingConflictError("Cannot Schedule", report={"can_schedule": False})
    assert conflict.status_code == 409
    assert conflict.report == {"can_schedule": False}
    assert PersistenceError("Could not assign appointment").status_code == 503
