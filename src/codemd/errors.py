"""
Exceptions raised by codemd.
"""


class CodemdError(Exception):
    """Base exception for codemd errors."""
    pass


class IgnoreFileError(CodemdError):
    """Raised when an ignore file is missing or cannot be read."""
    pass


class PatternSyntaxError(CodemdError):
    """Raised when an ignore pattern is not a valid glob."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class InvalidRootError(CodemdError):
    """Raised when the provided root directory is invalid."""
    pass


class ConfigFileError(CodemdError):
    """Raised when there are issues with config files."""
    pass


class OutputError(CodemdError):
    """Raised when there are issues writing output files."""
    pass


class FileReadError(CodemdError):
    """Raised when there are issues reading source files."""
    pass
