from typing import Optional


class ScanError(Exception):
    """Base class for everything the scan pipeline raises on purpose."""


class NoImageSelected(ScanError):
    """Analyze was requested before an image was selected."""


class UnsupportedMediaTypeError(ScanError):
    """The selected file is not an image."""


class MediaTypeMismatchError(ScanError, ValueError):
    """Declared media type does not describe the actual bytes."""


class ImageTooLargeError(ScanError):
    """Pillow refuses to open the image because of its pixel count."""


# ---------- TRANSPORT ----------

class TransportError(ScanError):
    kind = "transport"

    def __init__(self, message: str, kind: Optional[str] = None):
        super().__init__(message)
        if kind:
            self.kind = kind
        self.message = message


class TerminalRequestError(TransportError):
    """The service rejected the payload as malformed. Retrying cannot help."""

    kind = "terminal_request"

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class RetriesExhaustedError(TransportError):
    """Transient failures outlived the retry budget."""

    kind = "retries_exhausted"

    def __init__(self, message: str, attempts: int, last_error: object = None):
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


# ---------- INTERPRETATION ----------

class InterpretationError(ScanError):
    kind = "interpretation"


class EmptyResponseError(InterpretationError):
    """The service answered without any text."""

    kind = "empty_response"
