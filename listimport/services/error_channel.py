"""
listimport/services/error_channel.py

Caller-controlled reporting channel for import errors and diagnostics.
"""

from __future__ import annotations

import logging

from listimport.domain.list_import import ErrorMode, UnknownFieldDropped
from listimport.errors import ListImportError

logger = logging.getLogger(__name__)


class ErrorChannel:
    """
    Collects errors and diagnostics for one run.

    In SOFT mode an error is logged and collected and the caller carries on
    without a result for the failed unit. In STRICT mode the first error is
    raised. Diagnostics never raise.
    """

    def __init__(self, mode: ErrorMode = ErrorMode.SOFT) -> None:
        self.mode = mode
        self.errors: list[ListImportError] = []
        self.diagnostics: list[UnknownFieldDropped] = []

    @property
    def is_strict(self) -> bool:
        return self.mode is ErrorMode.STRICT

    def report(self, error: ListImportError) -> None:
        self.errors.append(error)
        logger.error("List import error mode=%s error=%s", self.mode.value, error)
        if self.is_strict:
            raise error

    def warn(self, diagnostic: UnknownFieldDropped) -> None:
        self.diagnostics.append(diagnostic)
        logger.warning(
            "Input field dropped row=%s field=%s",
            diagnostic.row_index,
            diagnostic.field_name,
        )
