"""Tests for error handling"""
import pytest

from commerce.core.errors import (
    ErrorResponse,
    NotFoundError,
    RPCTimeoutError,
    TransportError,
    ValidationError,
    error_from_status,
)


class TestErrorResponse:
    """Test ErrorResponse exception class"""

    def test_error_response_creation(self):
        error = ErrorResponse("Something went wrong", status_code=400)
        assert error.message == "Something went wrong"
        assert error.status_code == 400
        assert error.details == {}

    def test_error_response_default_status_code(self):
        assert ErrorResponse("Bad request").status_code == 400

    def test_error_response_str(self):
        assert str(ErrorResponse("Test error")) == "Test error"

    def test_to_dict(self):
        error = ErrorResponse("Not allowed", status_code=403, details={"field": "price"})
        assert error.to_dict() == {"error": "Not allowed", "details": {"field": "price"}}


class TestErrorTaxonomy:
    """Status codes carried by each error kind"""

    @pytest.mark.parametrize("error_class,status_code", [
        (ValidationError, 400),
        (NotFoundError, 404),
        (TransportError, 503),
        (RPCTimeoutError, 504),
    ])
    def test_status_codes(self, error_class, status_code):
        error = error_class("failure", details={"id": "123"})
        assert isinstance(error, ErrorResponse)
        assert error.status_code == status_code
        assert error.details == {"id": "123"}

    @pytest.mark.parametrize("error_class,status_code", [
        (ValidationError, 400),
        (NotFoundError, 404),
        (TransportError, 503),
        (RPCTimeoutError, 504),
    ])
    def test_error_from_status_restores_type(self, error_class, status_code):
        error = error_from_status("failure", status_code, {"id": "123"})
        assert type(error) is error_class
        assert error.details == {"id": "123"}

    def test_error_from_unknown_status(self):
        error = error_from_status("failure", 500)
        assert type(error) is ErrorResponse
        assert error.status_code == 500
