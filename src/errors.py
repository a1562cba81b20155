from typing import Optional


class PaymentsEngineError(Exception):
    """Base class for errors that abort the whole run."""


class InputFileError(PaymentsEngineError):
    def __init__(self, filepath: str, reason: str):
        self.filepath = filepath
        super().__init__(f"Cannot read transactions from {filepath}: {reason}")


class TransactionParseError(PaymentsEngineError):
    def __init__(self, message: str, line_number: Optional[int] = None):
        self.line_number = line_number
        if line_number is not None:
            message = f"Error parsing csv line {line_number}: {message}"
        else:
            message = f"Error parsing csv line: {message}"
        super().__init__(message)


class OutputWriteError(PaymentsEngineError):
    def __init__(self, reason: str):
        super().__init__(f"Error writing to std out: {reason}")
