"""
bifrost2postman/utils/exceptions.py

Custom exceptions for the project.
"""


class Bifrost2PostmanError(Exception):
    """
    Base class for all errors raised by bifrost2postman.
    """
    pass


class SourceParseError(Bifrost2PostmanError):
    """
    Exception raised when a C# source unit cannot be parsed.
    """

    def __init__(self, message: str, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class CorpusError(Bifrost2PostmanError):
    """
    Exception raised when the source corpus is missing a prerequisite
    (no Services folder, no source files). Fatal for the whole run.
    """
    pass
