from typing import Optional, Tuple


class VtlEmulatorError(Exception):
    """Base class for all errors raised by the emulator."""


class TemplateSyntaxError(VtlEmulatorError):
    """Raised when a mapping template cannot be parsed."""

    template_position: Optional[Tuple[int, int]]

    def __init__(self, message: str, template_position: Optional[Tuple[int, int]] = None):
        super().__init__(message)
        self.message = message
        # (line, column) of the parse failure, if reported by the engine
        self.template_position = template_position


class BindingError(VtlEmulatorError):
    """Raised when a template fails while being executed, e.g., because a bound accessor raised."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputParseError(VtlEmulatorError, ValueError):
    """Raised when a request body is not valid JSON and strict parsing was requested."""

    def __init__(self, message: str, body: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.body = body
