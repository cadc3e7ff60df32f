"""
Error taxonomy for Aya Image Edit.

Every pipeline stage raises one of these typed errors. `str(error)` is always
a single human-readable message suitable for showing to the user.

Classes:
    AyaError: Base class for all pipeline errors
    NoDocumentError / NoActiveDocumentError: No open document
    NoSelectionError: No active selection in the document
    UnsupportedHostError: Host lacks a required capability
    InvalidImagePayloadError: Image payload is not usable Base64 / data URI
    ProviderError: Provider returned a failure status or could not be reached
    NoImageProducedError: Provider call succeeded but produced no image
    DownloadError: Remote image could not be fetched
    InvalidTargetBoundsError: Placement rectangle is unusable
    PlacementFailedError: Placement failed downstream
    FilePermissionError: File system access was denied
    FileWriteError: A file could not be written for another OS reason
    AlphaNotSupportedError: Codec cannot store alpha in the requested container
    EditScopeError: Edit scope misuse (reentry, network call inside scope)
    ConfigurationError: Required configuration value is missing
"""

from typing import Optional


class AyaError(Exception):
    """Base class for all Aya Image Edit errors."""


class NoDocumentError(AyaError):
    def __init__(self, message: str = "No document is open"):
        super().__init__(message)


class NoActiveDocumentError(NoDocumentError):
    def __init__(self, message: str = "No active document to place the image into"):
        super().__init__(message)


class NoSelectionError(AyaError):
    def __init__(self, message: str = "Select a region in the document first"):
        super().__init__(message)


class UnsupportedHostError(AyaError):
    pass


class InvalidImagePayloadError(AyaError, ValueError):
    pass


class ProviderError(AyaError):
    """Provider call failed.

    Attributes:
        provider: Provider id that failed
        status: HTTP status code, or None for transport failures
        message: Human-readable message extracted from the response
    """

    def __init__(self, provider: str, status: Optional[int], message: str, label: Optional[str] = None):
        self.provider = provider
        self.status = status
        self.message = message
        name = label or provider
        if status is None:
            text = f"{name} request failed: {message}"
        else:
            text = f"{name} request failed ({status}): {message}"
        super().__init__(text)


class NoImageProducedError(AyaError):
    """Provider answered successfully but generated no image."""

    def __init__(
        self,
        provider: str,
        finish_reason: Optional[str] = None,
        message: str = "The model returned no image; adjust the prompt or try another model",
    ):
        self.provider = provider
        self.finish_reason = finish_reason
        super().__init__(message)


class DownloadError(AyaError):
    def __init__(self, url: str, message: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(message)


class InvalidTargetBoundsError(AyaError, ValueError):
    pass


class PlacementFailedError(AyaError):
    pass


class FilePermissionError(AyaError, PermissionError):
    """File system access was denied.

    Attributes:
        hint: Remediation advice for the user
    """

    def __init__(self, message: str, hint: str = ""):
        self.hint = hint
        super().__init__(f"{message}. {hint}" if hint else message)


class FileWriteError(AyaError, OSError):
    pass


class AlphaNotSupportedError(AyaError):
    pass


class EditScopeError(AyaError, RuntimeError):
    pass


class ConfigurationError(AyaError):
    pass
