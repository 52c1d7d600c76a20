from __future__ import annotations


class ZincError(Exception):
    """ Base class for all zinc errors"""
    pass


class ZincBadArgument(ZincError):
    """ Raised when an include directive gets a bad argument or an unknown library"""


class ZincReadError(ZincError):
    """ Raised when a file cannot be opened or read"""

    def __init__(self, message: str, path=None):
        super().__init__(message)
        self.path = path


class ZincSyntaxError(ZincError):
    """ Raised when native or foreign source cannot be parsed"""

    def __init__(self, message: str, line: int | None = None):
        super().__init__(message if line is None else f"line {line}: {message}")
        self.reason = message
        self.line = line


class ZincSessionError(ZincError):
    """ Raised when a preprocessor session is driven out of order"""


class ZincArityError(ZincError):
    """ Raised when no macro clause matches the number of arguments"""


class ZincTranslationError(ZincError):
    """ Raised in strict mode when a foreign definition cannot be translated"""

    def __init__(self, name: str, reason: str = ""):
        super().__init__(f"{name}: {reason}" if reason else name)
        self.name = name
        self.reason = reason


class ZincRecordTranslationError(ZincTranslationError):
    pass


class ZincMacroTranslationError(ZincTranslationError):
    pass


def format_error(err: ZincError) -> str:
    """User-facing message for an error raised while including a file."""
    if isinstance(err, ZincRecordTranslationError):
        return f"unable to translate record {err.name}"
    if isinstance(err, ZincMacroTranslationError):
        return f"unable to translate macro {err.name}"
    if isinstance(err, ZincBadArgument):
        return f"bad argument: {err}" if str(err) else "bad argument"
    return str(err)
