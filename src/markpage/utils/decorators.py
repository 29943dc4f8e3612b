#  Copyright (c) 2025 Tom Villani, Ph.D.
#
# src/markpage/utils/decorators.py
"""Utility decorators for markpage backends.

This module centralizes optional-dependency checks so that a backend built on
an optional library fails with an actionable :class:`DependencyError` rather
than a bare ImportError, plus a DEBUG-level timing helper.

"""

from __future__ import annotations

import importlib
import logging
import time
from contextlib import contextmanager
from functools import wraps
from typing import Any, Callable, Generator, List, Tuple

from markpage.exceptions import DependencyError
from markpage.utils.packages import check_version_requirement


def requires_dependencies(converter_name: str, packages: List[Tuple[str, str, str]]) -> Callable:
    """Check required dependencies and versions before calling the wrapped function.

    Parameters
    ----------
    converter_name : str
        Name of the component (e.g., "reportlab backend"). This appears in
        error messages.
    packages : list of tuple
        Required packages as (install_name, import_name, version_spec) tuples where:
        - install_name: Package name for pip install (e.g., "reportlab")
        - import_name: Module name for import statement (e.g., "reportlab")
        - version_spec: Version requirement (e.g., ">=4.0.0" or "" for any version)

    Returns
    -------
    Callable
        Decorated function that checks dependencies before execution

    Raises
    ------
    DependencyError
        If any required package is missing or has an incompatible version.

    Examples
    --------
        >>> @requires_dependencies("reportlab backend", [("reportlab", "reportlab", ">=4.0.0")])
        ... def __init__(self, options):
        ...     from reportlab.pdfgen import canvas

    """

    def decorator(method: Callable) -> Callable:
        @wraps(method)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            missing = []
            version_mismatches = []
            original_error = None

            for install_name, import_name, version_spec in packages:
                try:
                    # nosemgrep: python.lang.security.audit.non-literal-import.non-literal-import
                    importlib.import_module(import_name)

                    if version_spec:
                        meets_requirement, installed_version = check_version_requirement(install_name, version_spec)
                        if not meets_requirement:
                            version_mismatches.append((install_name, version_spec, installed_version or "unknown"))

                except ImportError as e:
                    missing.append((install_name, version_spec))
                    if original_error is None:
                        original_error = e

            if missing or version_mismatches:
                raise DependencyError(
                    converter_name=converter_name,
                    missing_packages=missing,
                    version_mismatches=version_mismatches,
                    original_import_error=original_error,
                ) from original_error

            return method(*args, **kwargs)

        return wrapper

    return decorator


@contextmanager
def debug_timer(logger: logging.Logger, operation: str) -> Generator[None, None, None]:
    """Log the elapsed time of a block at DEBUG level.

    Parameters
    ----------
    logger : logging.Logger
        Logger instance to use for DEBUG messages
    operation : str
        Description of the operation being timed (e.g., "Layout pass 1")

    Examples
    --------
        >>> with debug_timer(logger, "Layout pass 1"):
        ...     context = await engine.layout(elements, context)
        ... # Logs: "Layout pass 1 completed in 0.42s" at DEBUG level

    """
    if logger.isEnabledFor(logging.DEBUG):
        start_time = time.perf_counter()
        yield
        elapsed = time.perf_counter() - start_time
        logger.debug(f"{operation} completed in {elapsed:.2f}s")
    else:
        yield
