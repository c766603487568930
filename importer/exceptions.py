class MissingPayload(ValueError):
    """
    Raised when a deploy input does not carry the payload matching its source.

    The message names the source whose payload was absent so it can be shown
    to the user directly.
    """

    def __init__(self, source):
        self.source = source
        super().__init__(f"No import payload was provided for source {source}")


class EnqueueFailure(Exception):
    """
    Raised when a background job could not be handed to the broker
    """

    pass


class AdapterFailure(Exception):
    """
    Raised by a source adapter when the whole import can not proceed.

    ``step`` is the ``ImportFailStep`` recorded on the synthetic failed item
    written to the import report.
    """

    step = None


class SourceFetchError(AdapterFailure):
    """
    Raised when a remote source is unreachable or answers with an error
    """

    step = "source_fetch"


class InputTransformError(AdapterFailure):
    """
    Raised when an uploaded export or an API response can not be understood
    """

    step = "input_transform"
