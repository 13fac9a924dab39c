"""
tests/test_list_ingestion_service.py

End-to-end runs of ListIngestionService against the in-memory store.

Coverage
--------
- Import into an existing list
- Auto-create with column provisioning
- Soft-mode row failure does not stop later rows
- Failed-row policies: skip and flush-and-confirm, including a failed flush
- Sample fields that name read-only columns
- Strict mode propagation
- Missing list with auto-create off
- Partial schema provisioning
- Quiet mode and unknown-field diagnostics
"""

from __future__ import annotations

import pytest

from listimport.domain.list_import import (
    ErrorMode,
    FailedRowPolicy,
    ListImportOptions,
    UnknownFieldDropped,
)
from listimport.domain.list_schema import ColumnDescriptor, ColumnKind
from listimport.errors import (
    ListNotFoundError,
    RowCommitError,
    SchemaProvisionError,
    StoreRequestError,
)
from listimport.services.error_channel import ErrorChannel
from listimport.services.list_ingestion_service import ListIngestionService
from listimport.stores.memory_store import InMemoryListStore


# ---------------------------------------------------------------------------
# Store doubles
# ---------------------------------------------------------------------------


class FlakyStore(InMemoryListStore):
    """Raises a transport error on the next ``failures`` commits."""

    def __init__(self, failures: int = 1) -> None:
        super().__init__()
        self.failures = failures
        self.commit_calls = 0

    def commit(self, session):
        self.commit_calls += 1
        if self.failures > 0:
            self.failures -= 1
            raise StoreRequestError("connection reset by peer")
        return super().commit(session)


class RefusingStore(InMemoryListStore):
    def __init__(self, refused: str) -> None:
        super().__init__()
        self.refused = refused

    def create_column(self, session, handle, column):
        if column.name == self.refused:
            raise StoreRequestError(f"column '{column.name}' refused")
        super().create_column(session, handle, column)


class UnreachableStore(InMemoryListStore):
    def resolve_list(self, session, list_name):
        raise StoreRequestError("GetList: request failed after retries.")


def _run(store, records, *, options=None, mode=ErrorMode.SOFT, list_name="Tasks"):
    service = ListIngestionService(store=store)
    session = store.open_session()
    try:
        return service.ingest(
            session=session,
            list_name=list_name,
            records=records,
            options=options,
            errors=ErrorChannel(mode),
        )
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Happy paths
# ---------------------------------------------------------------------------


def test_imports_into_existing_list() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks")

    summary = _run(store, [{"Title": "Hello"}])

    assert store.items("Tasks") == [{"Title": "Hello"}]
    assert summary.rows_committed == 1
    assert summary.list_created is False
    assert summary.confirmations == [{"ID": "1", "Title": "Hello"}]
    assert summary.errors == []


def test_auto_create_provisions_columns_from_first_row() -> None:
    store = InMemoryListStore()

    summary = _run(
        store,
        [{"Title": "Hello", "Score": 3.5}],
        options=ListImportOptions(auto_create=True),
    )

    assert summary.list_created is True
    assert summary.columns_created == [ColumnDescriptor(name="Score", kind=ColumnKind.NUMBER)]
    assert store.items("Tasks") == [{"Title": "Hello", "Score": "3.5"}]
    assert summary.rows_committed == 1


def test_auto_create_with_no_records_creates_bare_list() -> None:
    store = InMemoryListStore()

    summary = _run(store, [], options=ListImportOptions(auto_create=True))

    assert summary.list_created is True
    assert summary.columns_created == []
    assert summary.commit_results == []
    assert store.items("Tasks") == []


def test_each_row_is_committed_separately() -> None:
    store = FlakyStore(failures=0)
    store.add_list("Tasks")

    summary = _run(store, [{"Title": "A"}, {"Title": "B"}, {"Title": "C"}])

    assert store.commit_calls == 3
    assert summary.rows_committed == 3


def test_reserved_id_in_input_is_ignored() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks")

    summary = _run(store, [{"ID": 500, "Title": "Hello"}])

    assert store.items("Tasks") == [{"Title": "Hello"}]
    assert summary.confirmations[0]["ID"] == "1"
    assert summary.diagnostics == []


def test_quiet_mode_skips_read_back() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks")

    summary = _run(store, [{"Title": "Hello"}], options=ListImportOptions(quiet=True))

    assert summary.rows_committed == 1
    assert summary.confirmations == []


def test_unknown_fields_are_reported_as_diagnostics() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks")

    summary = _run(store, [{"Title": "Hello", "Colour": "red"}])

    assert summary.rows_committed == 1
    assert summary.diagnostics == [UnknownFieldDropped(row_index=0, field_name="Colour")]
    assert summary.errors == []
    assert summary.to_dict()["dropped_fields"] == [
        "Row 0: field 'Colour' has no matching column and was dropped."
    ]


# ---------------------------------------------------------------------------
# Row failures
# ---------------------------------------------------------------------------


def test_failed_row_does_not_stop_later_rows() -> None:
    store = FlakyStore(failures=1)
    store.add_list("Tasks")

    summary = _run(store, [{"Title": "A"}, {"Title": "B"}])

    assert summary.confirmations == [{"ID": "1", "Title": "B"}]
    assert store.items("Tasks") == [{"Title": "B"}]
    assert summary.rows_committed == 1
    assert summary.rows_failed == 1
    assert len(summary.errors) == 1
    assert "Row 0 failed during commit" in summary.errors[0]


def test_rejected_value_fails_only_its_row() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks", {"Score": ColumnKind.NUMBER})

    summary = _run(store, [{"Title": "A", "Score": "lots"}, {"Title": "B", "Score": 2}])

    assert store.items("Tasks") == [{"Title": "B", "Score": "2"}]
    assert summary.rows_failed == 1
    assert summary.confirmations == [{"ID": "1", "Title": "B", "Score": "2"}]


def test_flush_and_confirm_retries_pending_row_after_transport_failure() -> None:
    store = FlakyStore(failures=1)
    store.add_list("Tasks")
    options = ListImportOptions(failed_row_policy=FailedRowPolicy.FLUSH_AND_CONFIRM)

    summary = _run(store, [{"Title": "A"}, {"Title": "B"}], options=options)

    assert store.items("Tasks") == [{"Title": "A"}, {"Title": "B"}]
    assert summary.rows_committed == 2
    assert [record["Title"] for record in summary.confirmations] == ["A", "B"]
    # The original failure is still reported.
    assert len(summary.errors) == 1


def test_flush_and_confirm_reports_read_back_of_rejected_row() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks", {"Score": ColumnKind.NUMBER})
    options = ListImportOptions(failed_row_policy=FailedRowPolicy.FLUSH_AND_CONFIRM)

    summary = _run(store, [{"Title": "A", "Score": "lots"}, {"Title": "B"}], options=options)

    assert summary.rows_failed == 1
    assert summary.confirmations == [{"ID": "1", "Title": "B"}]
    assert len(summary.errors) == 2
    assert "during commit" in summary.errors[0]
    assert "during confirm" in summary.errors[1]


def test_flush_and_confirm_drops_row_when_flush_also_fails() -> None:
    store = FlakyStore(failures=2)
    store.add_list("Tasks")
    options = ListImportOptions(failed_row_policy=FailedRowPolicy.FLUSH_AND_CONFIRM)

    summary = _run(store, [{"Title": "A"}, {"Title": "B"}], options=options)

    assert store.items("Tasks") == [{"Title": "B"}]
    assert summary.rows_committed == 1
    assert summary.rows_failed == 1
    assert summary.confirmations == [{"ID": "1", "Title": "B"}]
    assert "during commit" in summary.errors[0]
    assert "during flush" in summary.errors[1]
    assert "during confirm" in summary.errors[2]
    assert len(summary.errors) == 3


def test_skip_policy_does_not_attempt_read_back_of_failed_row() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks", {"Score": ColumnKind.NUMBER})

    summary = _run(store, [{"Title": "A", "Score": "lots"}])

    assert len(summary.errors) == 1
    assert "during commit" in summary.errors[0]


def test_strict_mode_raises_on_first_row_failure() -> None:
    store = InMemoryListStore()
    store.add_list("Tasks", {"Score": ColumnKind.NUMBER})

    with pytest.raises(RowCommitError) as exc_info:
        _run(
            store,
            [{"Title": "A"}, {"Title": "B", "Score": "lots"}, {"Title": "C"}],
            mode=ErrorMode.STRICT,
        )

    assert exc_info.value.row_index == 1
    assert store.items("Tasks") == [{"Title": "A"}]


# ---------------------------------------------------------------------------
# List resolution and provisioning
# ---------------------------------------------------------------------------


def test_missing_list_without_auto_create_aborts_in_soft_mode() -> None:
    store = InMemoryListStore()

    summary = _run(store, [{"Title": "Hello"}])

    assert summary.aborted is True
    assert summary.commit_results == []
    assert summary.errors == ["List 'Tasks' was not found and auto-create is disabled."]
    assert store.resolve_list(store.open_session(), "Tasks") is None


def test_missing_list_without_auto_create_raises_in_strict_mode() -> None:
    with pytest.raises(ListNotFoundError):
        _run(InMemoryListStore(), [{"Title": "Hello"}], mode=ErrorMode.STRICT)


def test_store_failure_while_resolving_propagates() -> None:
    with pytest.raises(StoreRequestError):
        _run(UnreachableStore(), [{"Title": "Hello"}])


def test_sample_fields_matching_read_only_columns_do_not_block_provisioning() -> None:
    store = InMemoryListStore()

    summary = _run(
        store,
        [{"Title": "A", "LinkTitle": "x", "Score": 1}],
        options=ListImportOptions(auto_create=True),
    )

    assert summary.columns_created == [ColumnDescriptor(name="Score", kind=ColumnKind.NUMBER)]
    assert summary.errors == []
    assert store.items("Tasks") == [{"Title": "A", "Score": "1"}]
    assert summary.diagnostics == [UnknownFieldDropped(row_index=0, field_name="LinkTitle")]


def test_partial_provisioning_continues_with_created_columns() -> None:
    store = RefusingStore(refused="Score")
    sample = {"Title": "x", "Owner": "ann", "Score": 1, "Active": True}

    summary = _run(store, [sample], options=ListImportOptions(auto_create=True))

    assert [column.name for column in summary.columns_created] == ["Owner"]
    assert store.items("Tasks") == [{"Title": "x", "Owner": "ann"}]
    assert {diagnostic.field_name for diagnostic in summary.diagnostics} == {"Score", "Active"}
    assert len(summary.errors) == 1
    assert "Failed to create column 'Score'" in summary.errors[0]


def test_provisioning_failure_raises_in_strict_mode() -> None:
    store = RefusingStore(refused="Score")

    with pytest.raises(SchemaProvisionError):
        _run(
            store,
            [{"Title": "x", "Score": 1}],
            options=ListImportOptions(auto_create=True),
            mode=ErrorMode.STRICT,
        )

    assert store.items("Tasks") == []
