import pytest

from microshop.errors import (
    CONCURRENT_CONFLICT,
    INSUFFICIENT_STOCK,
    INVALID_ID,
    REPERTORY_NOT_FOUND,
    USER_NOT_FOUND,
    ServiceError,
    bad_request,
    not_found,
)


def _fields(err):
    return err.code, err.reason, err.message


def test_not_found_has_404_code():
    err = not_found("THING_NOT_FOUND", "thing not found")
    assert _fields(err) == (404, "THING_NOT_FOUND", "thing not found")


def test_bad_request_has_400_code():
    err = bad_request("BAD", "bad input")
    assert _fields(err) == (400, "BAD", "bad input")


def test_service_error_can_be_raised_and_caught():
    err = ServiceError(500, "BOOM", "it broke")
    assert _fields(err) == (500, "BOOM", "it broke")
    with pytest.raises(ServiceError) as info:
        raise err
    assert _fields(info.value) == (500, "BOOM", "it broke")


def test_str_mentions_code_reason_and_message():
    text = str(ServiceError(409, "CONFLICT", "clash"))
    assert "409" in text
    assert "CONFLICT" in text
    assert "clash" in text


def test_predefined_errors_match_source():
    assert _fields(USER_NOT_FOUND) == _fields(not_found("USER_NOT_FOUND", "users not found"))
    invalid = _fields(INVALID_ID)
    assert (invalid[0], invalid[2]) == (400, "invalid id")
    assert _fields(REPERTORY_NOT_FOUND)[2] == "repertory not found"
    assert _fields(CONCURRENT_CONFLICT)[1] == "CONCURRENT_CONFLICT"
    assert _fields(INSUFFICIENT_STOCK)[1] == "INSUFFICIENT_STOCK"