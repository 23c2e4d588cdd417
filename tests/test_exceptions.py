"""Test the exception hierarchy."""
import pytest

import spend_monitor.core as core
from spend_monitor.core import (
    ApplicationException,
    AuthenticationException,
    ConfigurationException,
    ExternalServiceException,
    NotifierException,
    TransportException,
)


class TestHierarchy:
    @pytest.mark.parametrize("exc_type", [AuthenticationException, TransportException, NotifierException])
    def test_upstream_failures_are_external_service_errors(self, exc_type):
        exc = exc_type("Tableau", "boom")
        assert isinstance(exc, ExternalServiceException)
        assert isinstance(exc, ApplicationException)

    def test_configuration_error_carries_details(self):
        exc = ConfigurationException("bad config", {"fields": ["slack"]})
        assert exc.message == "bad config"
        assert exc.details == {"fields": ["slack"]}
        assert str(exc) == "bad config"

    def test_exported_names_are_the_raised_ones(self):
        assert sorted(core.__all__) == sorted([
            "ApplicationException",
            "ConfigurationException",
            "ExternalServiceException",
            "AuthenticationException",
            "TransportException",
            "NotifierException",
        ])
