"""Unified exception hierarchy for finmail."""


class FinmailError(Exception):
    """Base exception for all finmail errors."""


# Gmail
class GmailError(FinmailError):
    """Base exception for Gmail operations."""


class GmailAuthError(GmailError):
    """Missing, malformed or rejected OAuth token bundle."""


class GmailFetchError(GmailError):
    """Failed to list or fetch Gmail messages or attachments."""


# Gemini
class GeminiError(FinmailError):
    """Base exception for text-generation calls."""


class RateLimitError(GeminiError):
    """The text-generation service asked us to slow down (HTTP 429)."""


class ServiceUnavailableError(GeminiError):
    """The text-generation service is temporarily unavailable (HTTP 503)."""


# Profiles
class ProfileError(FinmailError):
    """Base exception for user profile operations."""


class ProfileValidationError(ProfileError):
    """Required profile input is missing or invalid."""


class ProfileNotFoundError(ProfileError):
    """No stored profile with the requested user id."""


# Storage
class StorageError(FinmailError):
    """Base exception for JSON file storage."""


class StoredFileNotFoundError(StorageError):
    """Requested stored file does not exist."""


# Outbound integrations
class WebhookError(FinmailError):
    """Forwarding emails to the workflow webhook failed."""


class ExportError(FinmailError):
    """Importing stored files into MongoDB failed."""
