"""Core domain types: results, errors, desired state, options resolution."""

from .errors import ErrorKind, ExitCode, ProvisionError
from .options import DEFAULT_OPTIONS, DesiredState, RuntimeOptions, VersionEntry
from .result import Err, Ok, Result, is_err, is_ok

__all__ = [
    # errors
    "ErrorKind",
    "ExitCode",
    "ProvisionError",
    # options
    "DEFAULT_OPTIONS",
    "DesiredState",
    "RuntimeOptions",
    "VersionEntry",
    # result
    "Err",
    "Ok",
    "Result",
    "is_err",
    "is_ok",
]
