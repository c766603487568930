class CatalogError(Exception):
    """
    Raised when a write against the catalog or a user's history is rejected.

    The message is shown to users in import reports, so it should be a short
    human-readable sentence.
    """

    @property
    def message(self):
        return str(self)


class ProviderLookupError(CatalogError):
    """
    Raised when a metadata provider cannot return details for an identifier,
    either because the provider is unreachable, the identifier is unknown or
    no provider is configured for the requested source.
    """

    pass


class MediaNotFound(ProviderLookupError):
    """
    Raised when a metadata provider answers that an identifier does not exist
    """

    pass
