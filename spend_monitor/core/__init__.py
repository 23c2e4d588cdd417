"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from spend_monitor.core.exceptions import (
    ApplicationException,
    ConfigurationException,
    ExternalServiceException,
    AuthenticationException,
    TransportException,
    NotifierException,
)

__all__ = [
    "ApplicationException",
    "ConfigurationException",
    "ExternalServiceException",
    "AuthenticationException",
    "TransportException",
    "NotifierException",
]
