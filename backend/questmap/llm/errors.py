"""Failures raised by the external-service adapters.

The orchestrator absorbs all of them (and anything else) at the step that
issued the call; they exist so logs and warnings say what went wrong.
"""

from __future__ import annotations


class ExternalServiceError(Exception):
    """Base for every failure of a text, vision or image service."""


class ServiceNotConfiguredError(ExternalServiceError):
    """Feature switched off or credential missing."""


class EmptyPayloadError(ExternalServiceError):
    """The service answered but returned nothing usable."""


class MalformedPayloadError(ExternalServiceError):
    """The payload could not be parsed or failed structural checks."""
