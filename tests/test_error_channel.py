from __future__ import annotations

import logging

import pytest

from listimport.domain.list_import import ErrorMode, UnknownFieldDropped
from listimport.errors import ListNotFoundError, RowCommitError
from listimport.services.error_channel import ErrorChannel


def test_soft_mode_collects_and_continues(caplog: pytest.LogCaptureFixture) -> None:
    channel = ErrorChannel()

    with caplog.at_level(logging.ERROR):
        channel.report(RowCommitError(row_index=2, reason="rejected"))

    assert not channel.is_strict
    assert [str(error) for error in channel.errors] == ["Row 2 failed during commit: rejected"]
    assert "List import error" in caplog.text


def test_strict_mode_raises_the_reported_error() -> None:
    channel = ErrorChannel(ErrorMode.STRICT)
    error = ListNotFoundError("Tasks")

    with pytest.raises(ListNotFoundError) as exc_info:
        channel.report(error)

    assert exc_info.value is error
    assert channel.errors == [error]


def test_diagnostics_never_raise() -> None:
    channel = ErrorChannel(ErrorMode.STRICT)

    channel.warn(UnknownFieldDropped(row_index=0, field_name="Colour"))

    assert channel.errors == []
    assert channel.diagnostics == [UnknownFieldDropped(row_index=0, field_name="Colour")]
