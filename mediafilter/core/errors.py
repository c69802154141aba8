from __future__ import annotations


class MediaFilterError(RuntimeError):
    """Base class for failures that end the current run."""


class ConfigurationError(MediaFilterError):
    pass


class CredentialStorageError(MediaFilterError):
    """Raised when the token file cannot be written."""


class OAuthError(MediaFilterError):
    pass


class TokenExchangeError(OAuthError):
    pass


class TokenRefreshError(OAuthError):
    pass


class AuthorizationTimeout(OAuthError):
    pass


class CallbackListenerError(OAuthError):
    pass


class CatalogPayloadError(MediaFilterError):
    """Raised when a Trakt response does not match the expected shape."""


class PersonSelectionError(MediaFilterError):
    pass
