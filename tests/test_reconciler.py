"""
Tests for N-way inventory reconciliation.
"""

import pytest

from gfi.config import DiffOptions
from gfi.errors import InputShapeError, InsufficientInputError
from gfi.filters import EntryFilter, KindFilter
from gfi.models import EntryKind, FieldKind, Inventory
from gfi.reconcile import Reconciler
from gfi.reconcile.engine import Detection, detect, merge_detections

T1 = "2024/01/02 03:04:05.000"
T2 = "2024/01/02 03:04:06.000"


def _inv(*entries) -> Inventory:
    return Inventory.from_entries(entries)


def _rows_by(table, field_kind: str) -> list[list[str]]:
    return [r for r in table.rows if r[2] == field_kind]


class TestTwoWay:
    def test_time_difference(self, make_entry):
        a = _inv(make_entry("/x", time=T1))
        b = _inv(make_entry("/x", time=T2))

        result = Reconciler().reconcile([a, b], ["a.csv", "b.csv"])

        assert result.header == ["Key", "Type", "FieldKind", "a.csv", "b.csv"]
        assert result.rows == [["/x", "File", "Time", T1, T2]]

    def test_count_difference(self, make_entry):
        a = _inv(*(make_entry(f"/f{i}") for i in range(5)))
        b = _inv(*(make_entry(f"/f{i}") for i in range(6)))

        result = Reconciler().reconcile([a, b])

        assert _rows_by(result, "Count") == [["Count", "", "Count", "5", "6"]]
        assert _rows_by(result, "Full") == [["/f5", "File", "Full", "", "/f5"]]

    def test_identical_inventories_give_empty_result(self, make_entry):
        a = _inv(make_entry("/x"), make_entry("/y"))
        result = Reconciler().reconcile([a, a])
        assert result.is_empty

    def test_every_field_is_compared(self, make_entry):
        a = _inv(make_entry("/x", size="1", mode="-rw-r--r--"))
        b = _inv(make_entry("/x", size="2", mode="-rwxr-xr-x"))

        result = Reconciler().reconcile([a, b])

        assert {r[2] for r in result.rows} == {"Size", "Mode"}
        assert ["/x", "File", "Size", "1", "2"] in result.rows
        assert ["/x", "File", "Mode", "-rw-r--r--", "-rwxr-xr-x"] in result.rows

    def test_directory_type_column(self, make_entry):
        a = _inv(make_entry("/d", kind=EntryKind.DIRECTORY))
        b = _inv()
        result = Reconciler().reconcile([a, b])
        assert ["/d", "Directory", "Full", "/d", ""] in result.rows


class TestMultiWay:
    def test_absence_fills_only_sources_that_have_the_entry(self, make_entry):
        """Only sources that have the entry report it missing elsewhere."""
        common = make_entry("/common")
        a = _inv(common, make_entry("/x"))
        b = _inv(common, make_entry("/x"))
        c = _inv(common)

        result = Reconciler().reconcile([a, b, c])

        assert _rows_by(result, "Full") == [["/x", "File", "Full", "/x", "/x", ""]]
        assert _rows_by(result, "Count") == [["Count", "", "Count", "2", "2", "1"]]

    def test_slot_filled_when_source_disagrees_with_any_other(self, make_entry):
        a = _inv(make_entry("/x", size="1"))
        b = _inv(make_entry("/x", size="1"))
        c = _inv(make_entry("/x", size="2"))

        result = Reconciler().reconcile([a, b, c])

        assert result.rows == [["/x", "File", "Size", "1", "1", "2"]]

    def test_one_row_per_key_and_field(self, make_entry):
        invs = [_inv(make_entry("/x", size=str(i))) for i in range(4)]
        result = Reconciler(DiffOptions(workers=4)).reconcile(invs)
        assert result.rows == [["/x", "File", "Size", "0", "1", "2", "3"]]


class TestDeterminism:
    def _inputs(self, make_entry):
        a = _inv(*(make_entry(f"/k{i:02d}", size="1", time=T1) for i in range(20)))
        b = _inv(*(make_entry(f"/k{i:02d}", size="2", time=T2) for i in range(0, 20, 2)))
        return [a, b]

    def test_repeated_runs_give_identical_tables(self, make_entry):
        invs = self._inputs(make_entry)
        first = Reconciler(DiffOptions(workers=2)).reconcile(invs)
        for _ in range(5):
            again = Reconciler(DiffOptions(workers=2)).reconcile(invs)
            assert again.rows == first.rows

    def test_ties_on_sort_columns_are_broken_by_whole_row(self, make_entry):
        a = _inv(make_entry("/x", size="1", time=T1))
        b = _inv(make_entry("/x", size="2", time=T2))

        result = Reconciler(DiffOptions(sort_columns=(0,))).reconcile([a, b])

        assert [r[2] for r in result.rows] == ["Size", "Time"]

    def test_sort_by_value_column(self, make_entry):
        a = _inv(make_entry("/a", size="9"), make_entry("/b", size="1"))
        b = _inv(make_entry("/a", size="0"), make_entry("/b", size="0"))

        result = Reconciler(DiffOptions(sort_columns=(3,))).reconcile([a, b])

        assert [r[0] for r in result.rows] == ["/b", "/a"]

    @pytest.mark.parametrize("workers", [1, 2, 4])
    def test_type_column_independent_of_scheduling(self, make_entry, workers):
        """A key that is a file in one source and a directory in another."""
        a = _inv(make_entry("/x", size="1"))
        b = _inv(make_entry("/x", size="2", kind=EntryKind.DIRECTORY))
        c = _inv(make_entry("/x", size="3", kind=EntryKind.DIRECTORY))

        for _ in range(5):
            result = Reconciler(DiffOptions(workers=workers)).reconcile([c, a, b])
            assert result.rows == [["/x", "Directory", "Size", "3", "1", "2"]]

    def test_sort_column_out_of_range(self, make_entry):
        a = _inv(make_entry("/x", size="1"))
        b = _inv(make_entry("/x", size="2"))
        with pytest.raises(InputShapeError):
            Reconciler(DiffOptions(sort_columns=(5,))).reconcile([a, b])


class TestFilters:
    def test_include_pattern(self, make_entry):
        a = _inv(make_entry("/keep.txt", size="1"), make_entry("/drop.log", size="1"))
        b = _inv(make_entry("/keep.txt", size="2"), make_entry("/drop.log", size="2"))

        result = Reconciler(DiffOptions(include=(r"\.txt$",))).reconcile([a, b])

        assert [r[0] for r in result.rows] == ["/keep.txt"]

    def test_kind_filter(self, make_entry):
        a = _inv(make_entry("/d", kind=EntryKind.DIRECTORY), make_entry("/f"))
        b = _inv()

        result = Reconciler(DiffOptions(kind=KindFilter.FILES)).reconcile([a, b])

        assert _rows_by(result, "Full") == [["/f", "File", "Full", "/f", ""]]

    def test_count_row_ignores_filters(self, make_entry):
        a = _inv(make_entry("/x.log"))
        b = _inv()
        result = Reconciler(DiffOptions(include=(r"\.txt$",))).reconcile([a, b])
        assert result.rows == [["Count", "", "Count", "1", "0"]]


class TestInputValidation:
    def test_needs_two_inventories(self, make_entry):
        with pytest.raises(InsufficientInputError):
            Reconciler().reconcile([_inv(make_entry("/x"))])

    def test_source_names_must_match(self, make_entry):
        a = _inv(make_entry("/x"))
        with pytest.raises(InputShapeError):
            Reconciler().reconcile([a, a], ["only-one"])


class TestMerge:
    def test_type_comes_from_lowest_source(self):
        merged = merge_detections(
            [
                Detection(1, "/x", FieldKind.FULL, "Directory", "/x"),
                Detection(0, "/x", FieldKind.FULL, "File", "/x"),
            ],
            2,
        )
        assert len(merged) == 1
        assert merged[0].kind == "File"
        assert merged[0].values == ["/x", "/x"]

    def test_detect_reports_only_own_values(self, make_entry):
        invs = [_inv(make_entry("/x", size="1")), _inv(make_entry("/x", size="2"))]
        indexes = [inv.by_key() for inv in invs]
        found = list(detect(0, invs, indexes, EntryFilter()))
        assert found == [Detection(0, "/x", FieldKind.SIZE, "File", "1")]
