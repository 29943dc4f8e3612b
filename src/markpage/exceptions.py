#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/exceptions.py
"""Custom exceptions for the markpage library.

This module defines the exception classes raised while turning Markdown into a
paginated PDF. Parsing never raises: malformed Markdown falls through to the
paragraph rule. Per-element layout failures are recovered inside the layout
engine, so only configuration errors, missing dependencies and backend write
failures reach the caller.

Exception Hierarchy
-------------------
- MarkpageError (base exception)

  - ValidationError (parameter/option validation, orchestrator misuse)

  - AssetLoadError (image/SVG/source fetch, timeout or decode failure)

  - RenderOverflowError (content cannot fit even a fresh page)

  - BackendWriteError (the PDF backend rejected an operation)

  - DependencyError (missing/incompatible packages)

"""

from typing import Any


class MarkpageError(Exception):
    """Base exception class for all markpage-specific errors.

    Parameters
    ----------
    message : str
        Human-readable description of the error
    original_error : Exception, optional
        The original exception that caused this error, if applicable

    Attributes
    ----------
    message : str
        The error message
    original_error : Exception or None
        The wrapped original exception, if any

    """

    def __init__(self, message: str, original_error: Exception | None = None):
        """Initialize the error with a message and optional original exception."""
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class ValidationError(MarkpageError):
    """Exception raised for invalid input parameters or options.

    Parameters
    ----------
    message : str
        Description of the validation error
    parameter_name : str, optional
        Name of the invalid parameter
    parameter_value : any, optional
        The invalid value that was provided
    original_error : Exception, optional
        The original exception that caused this error

    """

    def __init__(
        self,
        message: str,
        parameter_name: str | None = None,
        parameter_value: Any = None,
        original_error: Exception | None = None,
    ):
        """Initialize the validation error with parameter details."""
        super().__init__(message, original_error=original_error)
        self.parameter_name = parameter_name
        self.parameter_value = parameter_value


class AssetLoadError(MarkpageError):
    """Exception raised when an asset cannot be fetched or decoded.

    Covers HTTP errors, timeouts, oversized responses, unreadable local files
    and image/SVG data that cannot be decoded. The layout engine recovers from
    this error by drawing an inline placeholder.

    Parameters
    ----------
    url : str
        The asset reference that failed to load
    message : str, optional
        Custom error message. If not provided, a default message is built
    original_error : Exception, optional
        The underlying exception

    Attributes
    ----------
    url : str
        The asset reference that failed to load

    """

    def __init__(self, url: str, message: str | None = None, original_error: Exception | None = None):
        """Initialize the asset load error."""
        if message is None:
            message = f"Failed to load asset: {url}"
        super().__init__(message, original_error=original_error)
        self.url = url


class RenderOverflowError(MarkpageError):
    """Exception raised when content cannot fit even on a fresh page.

    Parameters
    ----------
    element_kind : str
        Kind of element being placed (e.g. "table row")
    required : float
        Height the content needs, in points
    available : float
        Height of an empty page body, in points

    """

    def __init__(self, element_kind: str, required: float, available: float):
        """Initialize the overflow error."""
        message = (
            f"{element_kind} needs {required:.1f}pt but a fresh page only offers {available:.1f}pt"
        )
        super().__init__(message)
        self.element_kind = element_kind
        self.required = required
        self.available = available


class BackendWriteError(MarkpageError):
    """Exception raised when the PDF backend rejects an operation.

    This error is fatal for the current document and is never recovered by
    the layout engine.

    Parameters
    ----------
    message : str
        Description of the failure
    operation : str, optional
        Name of the backend operation that failed
    original_error : Exception, optional
        The underlying library exception

    """

    def __init__(self, message: str, operation: str | None = None, original_error: Exception | None = None):
        """Initialize the backend write error."""
        super().__init__(message, original_error=original_error)
        self.operation = operation


class DependencyError(MarkpageError):
    """Exception raised when required dependencies are not available.

    Parameters
    ----------
    converter_name : str
        Name of the component requiring dependencies
    missing_packages : list[tuple[str, str]]
        List of (package_name, version_spec) tuples for missing packages
    version_mismatches : list[tuple[str, str, str]], optional
        List of (package_name, required_version, installed_version) tuples
    message : str, optional
        Custom error message. If not provided, generates a helpful message
    original_import_error : ImportError, optional
        The first ImportError encountered

    """

    def __init__(
        self,
        converter_name: str,
        missing_packages: list[tuple[str, str]],
        version_mismatches: list[tuple[str, str, str]] | None = None,
        message: str | None = None,
        original_import_error: ImportError | None = None,
    ):
        """Initialize the dependency error with package details."""
        version_mismatches = version_mismatches or []
        self.original_import_error = original_import_error

        if message is None:
            message_parts = []
            if missing_packages:
                pkg_list = ", ".join(f"'{name}{spec}'" if spec else f"'{name}'" for name, spec in missing_packages)
                message_parts.append(f"{converter_name} requires the following packages: {pkg_list}")
            if version_mismatches:
                mismatch_str = ", ".join(
                    f"'{name}' (requires {required}, but {installed} is installed)"
                    for name, required, installed in version_mismatches
                )
                message_parts.append(f"{converter_name} has version mismatches: {mismatch_str}")
            message = "\n".join(message_parts)

            all_packages = missing_packages + [(name, req) for name, req, _ in version_mismatches]
            if all_packages:
                packages_str = " ".join(f'"{name}{spec}"' if spec else name for name, spec in all_packages)
                message += f"\nInstall with: pip install --upgrade {packages_str}"

        super().__init__(message)
        self.converter_name = converter_name
        self.missing_packages = missing_packages
        self.version_mismatches = version_mismatches
