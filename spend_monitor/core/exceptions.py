"""
Core Exceptions
================

Custom exceptions for the spend monitor.

Only ConfigurationException is fatal. Every other error is caught at the
component boundary that raised it and degrades that single query, source
or channel instead of aborting the run.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationException(ApplicationException):
    """Exception for configuration errors. Aborts the run before any network activity."""


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class AuthenticationException(ExternalServiceException):
    """Primary revenue source unreachable or rejected the credentials."""


class TransportException(ExternalServiceException):
    """Timeout or connection error after all retries were spent."""


class NotifierException(ExternalServiceException):
    """Chat channel rejected or never received the report."""
