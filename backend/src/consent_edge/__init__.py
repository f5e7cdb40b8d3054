"""Edge routing shim for the consent-management SDK and API."""

__version__ = "1.0.0"
