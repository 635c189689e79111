"""
Error taxonomy for the capture-website command line.

Every error is terminal for the invocation: the CLI prints a single line
to stderr and exits with status 1.
"""


class CaptureWebsiteError(Exception):
    code = "ERR_CAPTURE_WEBSITE"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidFormatError(CaptureWebsiteError):
    """A compound flag value could not be parsed."""

    code = "ERR_INVALID_FORMAT"

    def __init__(self, flag: str, detail: str):
        super().__init__(f"Invalid `--{flag}` value: {detail}")
        self.flag = flag
        self.detail = detail


ParseError = InvalidFormatError


class MissingInputError(CaptureWebsiteError):
    code = "ERR_MISSING_INPUT"

    def __init__(self, message: str = "Please specify a URL, file path or HTML"):
        super().__init__(message)


class InputFileNotFoundError(CaptureWebsiteError):
    code = "ERR_FILE_NOT_FOUND"

    def __init__(self, path: str):
        super().__init__(f"No such file or directory: '{path}'")
        self.path = path


class OutputExistsError(CaptureWebsiteError):
    code = "ERR_OUTPUT_EXISTS"

    def __init__(self, path: str):
        super().__init__(f"'{path}' already exists, use --overwrite to bypass this error")
        self.path = path


class CaptureError(CaptureWebsiteError):
    """Failure reported by the capture engine, message kept verbatim."""

    code = "ERR_CAPTURE_FAILED"


class OutputWriteError(CaptureWebsiteError):
    """The destination could not be created or written."""

    code = "ERR_OUTPUT_WRITE"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Could not write '{path}': {reason}")
        self.path = path
