"""
Tests for serializers and the document store layer.

Store behaviour is checked against every DocumentStore implementation via
the parametrized ``store`` fixture.
"""

import json

import pytest

from pullup_tier.core.config import TIER_LOGIC_VERSION, UNSCORED_SENTINEL
from pullup_tier.core.models import RankingSnapshot, RegionRanking, ScoreRecord, WorkoutLog
from pullup_tier.io.aggregate_store import AggregateStore
from pullup_tier.io.document_store import StoreError, get_many_chunked
from pullup_tier.io.json_store import JsonFileDocumentStore
from pullup_tier.io.log_store import WorkoutLogStore, logs_collection
from pullup_tier.io.serializers import (
    ValidationError,
    dict_to_user_aggregate,
    dict_to_workout_log,
    parse_int_csv,
    parse_int_list,
    workout_log_to_dict,
)


def _legacy_doc(date: str = "2024-07-17T08:00:00.000Z") -> dict:
    """A log document in its original JSON-string encoded shape."""
    return {
        "workoutType": "pullup",
        "workoutSubType": "routine",
        "date": date,
        "goalReps": "[5,4,3,2,1]",
        "doneReps": "[5,4,3,2,1]",
        "totalTime": 42,
        "pullupDetails": {"upTime": 30, "downTime": 45, "tempo": "[40,41,39,40,40]"},
    }


def _log(date: str, reps: list[int] | None = None) -> WorkoutLog:
    return WorkoutLog(date=date, done_reps=reps or [5], up_time=45, down_time=55, tempo=[40] * 5)


# ===========================================================================
# serializers.py
# ===========================================================================

class TestSerializers:

    def test_legacy_json_string_document(self):
        log = dict_to_workout_log(_legacy_doc())
        assert log.done_reps == [5, 4, 3, 2, 1]
        assert log.goal_reps == [5, 4, 3, 2, 1]
        assert log.tempo == [40, 41, 39, 40, 40]
        assert log.sub_type == "routine"
        assert log.up_time == 30
        assert log.score_record is None

    def test_written_document_uses_arrays(self):
        data = workout_log_to_dict(dict_to_workout_log(_legacy_doc()))
        assert data["doneReps"] == [5, 4, 3, 2, 1]
        assert data["pullupDetails"]["tempo"] == [40, 41, 39, 40, 40]
        assert "score" not in data

    def test_score_fields_are_read(self):
        doc = _legacy_doc()
        doc.update({"score": 61, "scoreVersion": TIER_LOGIC_VERSION})
        assert dict_to_workout_log(doc).score_record == ScoreRecord(61, TIER_LOGIC_VERSION)

    def test_missing_tempo_is_empty(self):
        doc = _legacy_doc()
        del doc["pullupDetails"]["tempo"]
        assert dict_to_workout_log(doc).tempo == []

    def test_undecodable_tempo_becomes_empty(self, log_messages):
        doc = _legacy_doc()
        doc["pullupDetails"]["tempo"] = "[40,41"
        log = dict_to_workout_log(doc)
        assert log.tempo == []
        assert log.done_reps == [5, 4, 3, 2, 1]
        assert any("tempo" in m for m in log_messages)

    def test_fractional_stored_score_is_dropped(self):
        doc = _legacy_doc()
        doc.update({"score": 28.6, "scoreVersion": 0})
        assert dict_to_workout_log(doc).score_record is None

    def test_missing_sub_type_defaults_to_free(self):
        doc = _legacy_doc()
        del doc["workoutSubType"]
        assert dict_to_workout_log(doc).sub_type == "free"

    def test_undecodable_reps_rejected(self):
        doc = _legacy_doc()
        doc["doneReps"] = "[5,4"
        with pytest.raises(ValidationError):
            dict_to_workout_log(doc)

    def test_negative_time_rejected(self):
        doc = _legacy_doc()
        doc["pullupDetails"]["upTime"] = -3
        with pytest.raises(ValidationError):
            dict_to_workout_log(doc)

    def test_missing_details_rejected(self):
        doc = _legacy_doc()
        del doc["pullupDetails"]
        with pytest.raises(ValidationError):
            dict_to_workout_log(doc)

    def test_parse_int_list_accepts_integral_floats(self):
        assert parse_int_list([40.0, 41], "tempo") == [40, 41]

    def test_parse_int_list_rejects_bools_and_zero(self):
        with pytest.raises(ValidationError):
            parse_int_list([True], "tempo")
        with pytest.raises(ValidationError):
            parse_int_list([0], "tempo")

    def test_parse_int_csv(self):
        assert parse_int_csv("5,5, 4", "sets") == [5, 5, 4]
        assert parse_int_csv("", "tempo") == []
        with pytest.raises(ValidationError):
            parse_int_csv("5,x", "sets")

    def test_user_aggregate_with_wrong_types_is_unranked(self):
        aggregate = dict_to_user_aggregate("7", {"country": 12, "pullupTierScore": "high"})
        assert aggregate.country is None
        assert aggregate.pullup_tier_score is None
        assert not aggregate.is_ranked


# ===========================================================================
# document_store.py / json_store.py
# ===========================================================================

class TestDocumentStore:

    def test_get_missing_returns_none(self, store):
        assert store.get("users", "nobody") is None

    def test_set_then_get(self, store):
        store.set("users", "1", {"country": "Canada"})
        assert store.get("users", "1") == {"country": "Canada"}

    def test_returned_documents_are_not_aliases(self, store):
        store.set("users", "1", {"tags": ["a"]})
        doc = store.get("users", "1")
        doc["tags"].append("b")
        assert store.get("users", "1") == {"tags": ["a"]}

    def test_merge_keeps_sibling_fields(self, store):
        store.set("users", "1", {"country": "Canada", "nickname": "bar"})
        store.set("users", "1", {"pullupTierScore": 12.5}, merge=True)
        assert store.get("users", "1") == {
            "country": "Canada",
            "nickname": "bar",
            "pullupTierScore": 12.5,
        }

    def test_merge_recurses_into_maps(self, store):
        store.set("c", "1", {"details": {"a": 1, "b": 2}})
        store.set("c", "1", {"details": {"b": 3}}, merge=True)
        assert store.get("c", "1") == {"details": {"a": 1, "b": 3}}

    def test_set_without_merge_replaces(self, store):
        store.set("users", "1", {"country": "Canada"})
        store.set("users", "1", {"pullupTierScore": 3.0})
        assert store.get("users", "1") == {"pullupTierScore": 3.0}

    def test_query_orders_by_id_and_pages(self, store):
        for i in ["c", "a", "e", "b", "d"]:
            store.set("c", i, {"v": i})
        first = store.query("c", limit=2)
        assert [i for i, _ in first] == ["a", "b"]
        second = store.query("c", limit=2, start_after=first[-1][0])
        assert [i for i, _ in second] == ["c", "d"]

    def test_query_by_field_with_filter(self, store):
        store.set("c", "1", {"score": 10, "country": "Canada"})
        store.set("c", "2", {"score": 30, "country": "Canada"})
        store.set("c", "3", {"score": 20, "country": "France"})
        store.set("c", "4", {"country": "Canada"})
        rows = store.query("c", order_by="score", descending=True, where=[("country", "==", "Canada")])
        assert [i for i, _ in rows] == ["2", "1"]

    def test_query_in_operator(self, store):
        store.set("c", "1", {"country": "Canada"})
        store.set("c", "2", {"country": "France"})
        rows = store.query("c", where=[("country", "in", ["France", "Germany"])])
        assert [i for i, _ in rows] == ["2"]

    def test_unknown_operator_rejected(self, store):
        store.set("c", "1", {"v": 1})
        with pytest.raises(StoreError):
            store.query("c", where=[("v", "~=", 1)])

    def test_get_many(self, store):
        store.set("users", "1", {"v": 1})
        store.set("users", "2", {"v": 2})
        assert store.get_many("users", ["1", "2", "9"]) == {"1": {"v": 1}, "2": {"v": 2}}

    def test_get_many_is_bounded(self, store):
        with pytest.raises(StoreError):
            store.get_many("users", [str(i) for i in range(11)])

    def test_get_many_chunked(self, store):
        for i in range(25):
            store.set("users", str(i), {"v": i})
        found = get_many_chunked(store, "users", [str(i) for i in range(30)])
        assert len(found) == 25

    def test_invalid_collection_path(self, store):
        with pytest.raises(StoreError):
            store.get("users/1", "x")
        with pytest.raises(StoreError):
            store.set("../escape", "x", {})


class TestJsonFileStore:

    def test_persists_across_instances(self, tmp_path):
        JsonFileDocumentStore(tmp_path).set("users/1/workout_logs", "d1", {"v": 1})
        assert JsonFileDocumentStore(tmp_path).get("users/1/workout_logs", "d1") == {"v": 1}

    def test_collection_file_layout(self, tmp_path):
        s = JsonFileDocumentStore(tmp_path)
        assert s.collection_path("users") == tmp_path / "users.json"
        assert s.collection_path("users/1/workout_logs") == tmp_path / "users" / "1" / "workout_logs.json"

    def test_no_temporary_files_left(self, tmp_path):
        s = JsonFileDocumentStore(tmp_path)
        s.set("users", "1", {"v": 1})
        s.set("users", "1", {"v": 2})
        assert sorted(p.name for p in tmp_path.iterdir()) == ["users.json"]

    def test_unserialisable_document_leaves_file_intact(self, tmp_path):
        s = JsonFileDocumentStore(tmp_path)
        s.set("users", "1", {"v": 1})
        with pytest.raises(StoreError):
            s.set("users", "2", {"v": object()})
        assert json.loads((tmp_path / "users.json").read_text()) == {"1": {"v": 1}}
        assert sorted(p.name for p in tmp_path.iterdir()) == ["users.json"]

    def test_corrupt_file_raises_store_error(self, tmp_path):
        (tmp_path / "users.json").write_text("{not json")
        with pytest.raises(StoreError):
            JsonFileDocumentStore(tmp_path).get("users", "1")


# ===========================================================================
# log_store.py
# ===========================================================================

class TestWorkoutLogStore:

    def test_append_stores_log_and_fires_handler(self, store):
        changed: list[str] = []
        logs = WorkoutLogStore(store, on_change=changed.append)
        assert logs.append_log("42", _log("2024-07-01")) is True
        assert store.get(logs_collection("42"), "2024-07-01")["doneReps"] == [5]
        assert changed == ["42"]

    def test_identical_redelivery_is_noop(self, store):
        changed: list[str] = []
        logs = WorkoutLogStore(store, on_change=changed.append)
        logs.append_log("42", _log("2024-07-01"))
        assert logs.append_log("42", _log("2024-07-01")) is False
        assert changed == ["42"]

    def test_redelivery_ignores_attached_score(self, store):
        logs = WorkoutLogStore(store)
        logs.append_log("42", _log("2024-07-01"))
        logs.save_score_records("42", {"2024-07-01": ScoreRecord(29, TIER_LOGIC_VERSION)})
        assert logs.append_log("42", _log("2024-07-01")) is False

    def test_conflicting_log_for_same_date_rejected(self, store):
        logs = WorkoutLogStore(store)
        logs.append_log("42", _log("2024-07-01"))
        with pytest.raises(ValidationError):
            logs.append_log("42", _log("2024-07-01", reps=[8]))

    def test_load_pages_through_all_logs(self, store):
        logs = WorkoutLogStore(store, page_size=2)
        for day in ["05", "01", "03", "02", "04"]:
            logs.append_log("42", _log(f"2024-07-{day}"))
        dates = [d["date"] for d in logs.load_raw_logs("42")]
        assert dates == ["2024-07-01", "2024-07-02", "2024-07-03", "2024-07-04", "2024-07-05"]

    def test_save_score_records_merges(self, store):
        logs = WorkoutLogStore(store)
        logs.append_log("42", _log("2024-07-01"))
        logs.save_score_records("42", {"2024-07-01": ScoreRecord(29, TIER_LOGIC_VERSION)})
        doc = store.get(logs_collection("42"), "2024-07-01")
        assert doc["score"] == 29
        assert doc["scoreVersion"] == TIER_LOGIC_VERSION
        assert doc["doneReps"] == [5]

    def test_user_id_with_slash_rejected(self, store):
        with pytest.raises(ValidationError):
            WorkoutLogStore(store).append_log("a/b", _log("2024-07-01"))


# ===========================================================================
# aggregate_store.py
# ===========================================================================

class TestAggregateStore:

    def test_country_is_assigned_once(self, store):
        aggregates = AggregateStore(store)
        assert aggregates.assign_country("1", "Canada") is True
        assert aggregates.assign_country("1", "France") is False
        assert aggregates.get("1").country == "Canada"

    def test_score_write_keeps_country(self, store):
        aggregates = AggregateStore(store)
        aggregates.assign_country("1", "Canada")
        aggregates.set_pullup_score("1", 31.5)
        aggregate = aggregates.get("1")
        assert aggregate.country == "Canada"
        assert aggregate.pullup_tier_score == 31.5

    def test_country_assigned_after_score(self, store):
        aggregates = AggregateStore(store)
        aggregates.set_pullup_score("1", float(UNSCORED_SENTINEL))
        assert aggregates.assign_country("1", "Canada") is True
        assert aggregates.get("1").pullup_tier_score == UNSCORED_SENTINEL

    def test_empty_country_rejected(self, store):
        with pytest.raises(ValidationError):
            AggregateStore(store).assign_country("1", " ")

    def test_iter_aggregates_pages_through_all_users(self, store):
        for i in range(7):
            store.set("users", f"u{i}", {"pullupTierScore": float(i)})
        aggregates = list(AggregateStore(store, page_size=3).iter_aggregates())
        assert [a.user_id for a in aggregates] == [f"u{i}" for i in range(7)]

    def test_iter_aggregates_exact_page_multiple(self, store):
        for i in range(4):
            store.set("users", f"u{i}", {})
        assert len(list(AggregateStore(store, page_size=2).iter_aggregates())) == 4

    def test_get_many_beyond_lookup_bound(self, store):
        for i in range(12):
            store.set("users", f"u{i:02d}", {"country": "Canada"})
        found = AggregateStore(store).get_many([f"u{i:02d}" for i in range(12)])
        assert len(found) == 12

    def test_ranking_snapshot_roundtrip(self, store):
        aggregates = AggregateStore(store)
        assert aggregates.load_ranking_snapshot() is None
        snapshot = RankingSnapshot(
            rankings=[RegionRanking("Canada", 40.0, 20.0, 2)],
            updated_at="2024-07-17T08:00:00+00:00",
            algorithm_version=TIER_LOGIC_VERSION,
        )
        aggregates.save_ranking_snapshot(snapshot)
        assert aggregates.load_ranking_snapshot() == snapshot

    def test_invalid_page_size(self, store):
        with pytest.raises(ValueError):
            AggregateStore(store, page_size=0)
