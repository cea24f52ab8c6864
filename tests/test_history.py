import pandas as pd
import pytest

from core.errors import NotFoundError, ValidationError
from history.aggregator import client_stats, compare_records
from history.service import SimulationHistory


@pytest.fixture
def projection(builder):
    return builder.build_for_client("c-1")


def _save_many(history, builder, n, client_id="c-1", **kwargs):
    ids = []
    for i in range(n):
        p = builder.build_for_client(client_id, annual_rate=0.01 + 0.005 * i)
        ids.append(history.save(client_id, p, **kwargs))
    return ids


def test_save_snapshot(history, projection):
    sim_id = history.save("c-1", projection, tags=["baseline"])
    record = history.get(sim_id)
    assert sim_id == "sim-001"
    assert record.name == "Simulation 2025-01-15"
    assert record.tags == ("baseline",)
    assert record.results.final_value == projection.final_value
    assert record.results.total_return == projection.total_return
    assert record.results.projection_years == 36
    assert record.parameters.initial_value == 50_000.0
    assert record.created_at == record.updated_at


def test_saved_parameters_deduplicate_events(history, projection):
    record = history.get(history.save("c-1", projection))
    assert [(e.type, e.value, e.frequency) for e in record.parameters.events] == [
        ("Monthly savings", 500.0, "monthly")
    ]
    assert record.to_dict()["parameters"]["events"] == [
        {"type": "Monthly savings", "value": 500.0, "frequency": "monthly"}
    ]


def test_save_unknown_client(history, projection):
    with pytest.raises(NotFoundError):
        history.save("missing", projection)


def test_get_unknown(history):
    with pytest.raises(NotFoundError) as exc:
        history.get("nope")
    assert exc.value.entity == "simulation"


def test_list_pages(history, builder):
    ids = _save_many(history, builder, 12)
    page1 = history.list("c-1", {"page": 1, "limit": 5})
    assert page1.total == 12
    assert page1.total_pages == 3
    assert [r.id for r in page1.simulations] == list(reversed(ids))[:5]

    page3 = history.list("c-1", {"page": 3, "limit": 5})
    assert [r.id for r in page3.simulations] == list(reversed(ids))[10:]
    assert page3.pagination == {"page": 3, "limit": 5, "total": 12, "total_pages": 3}


def test_list_ascending(history, builder):
    ids = _save_many(history, builder, 3)
    result = history.list("c-1", {"sort_order": "asc"})
    assert [r.id for r in result.simulations] == ids


def test_list_is_per_client(history, builder):
    _save_many(history, builder, 2)
    _save_many(history, builder, 1, client_id="c-2")
    assert history.list("c-2").total == 1


def test_value_sort_orders_within_page(history, builder):
    # higher rate -> higher final value, saved oldest first
    _save_many(history, builder, 6)
    page = history.list("c-1", {"limit": 3, "sort_by": "final_value", "sort_order": "asc"})
    values = [r.results.final_value for r in page.simulations]
    assert values == sorted(values)
    # the page is still the three newest runs
    newest = history.list("c-1", {"limit": 3})
    assert {r.id for r in page.simulations} == {r.id for r in newest.simulations}


def test_tag_filter(history, builder, projection):
    history.save("c-1", projection, tags=["retirement"])
    history.save("c-1", projection, tags=["house"])
    history.save("c-1", projection, tags=["house", "retirement"])
    result = history.list("c-1", {"tags": ["house"]})
    assert [r.tags for r in result.simulations] == [("house", "retirement"), ("house",)]


@pytest.mark.parametrize("query", [{"limit": 51}, {"page": 0}, {"sort_by": "name"}])
def test_list_rejects_bad_query(history, query):
    with pytest.raises(ValidationError):
        history.list("c-1", query)


@pytest.mark.parametrize("n", [1, 6])
def test_compare_rejects_wrong_cardinality(history, builder, n):
    ids = _save_many(history, builder, n)
    with pytest.raises(ValidationError):
        history.compare(ids)


@pytest.mark.parametrize("n", [2, 5])
def test_compare_accepts_two_to_five(history, builder, n):
    ids = _save_many(history, builder, n)
    result = history.compare(ids)
    assert len(result.simulations) == n
    # rates rise with the index, so the last saved run is best
    assert result.comparison.best_performance.simulation_id == ids[-1]
    assert result.comparison.worst_performance.simulation_id == ids[0]
    finals = [history.get(i).results.final_value for i in ids]
    assert result.comparison.average_final_value == pytest.approx(sum(finals) / n)


def test_compare_missing_id(history, builder):
    ids = _save_many(history, builder, 2)
    with pytest.raises(NotFoundError):
        history.compare(ids + ["ghost"])


def test_compare_ties_pick_first(history, projection):
    a = history.save("c-1", projection)
    b = history.save("c-1", projection)
    result = compare_records([history.get(b), history.get(a)])
    assert result.comparison.best_performance.simulation_id == b
    assert result.comparison.worst_performance.simulation_id == b
    df = result.to_dataframe()
    assert df["best"].tolist() == [True, False]


def test_compare_records_empty():
    with pytest.raises(ValueError):
        compare_records([])


def test_update_metadata_merges(history, projection):
    sim_id = history.save("c-1", projection, name="First", description="desc", tags=["a"])
    before = history.get(sim_id)
    updated = history.update_metadata(sim_id, {"name": "Renamed"})
    assert updated.name == "Renamed"
    assert updated.description == "desc"
    assert updated.tags == ("a",)
    assert updated.updated_at > before.updated_at
    assert updated.created_at == before.created_at
    assert updated.results == before.results
    assert history.get(sim_id) == updated

    retagged = history.update_metadata(sim_id, {"tags": []})
    assert retagged.tags == ()
    assert retagged.name == "Renamed"


def test_update_metadata_errors(history, projection):
    with pytest.raises(NotFoundError):
        history.update_metadata("nope", {"name": "x"})
    sim_id = history.save("c-1", projection)
    with pytest.raises(ValidationError):
        history.update_metadata(sim_id, {"tags": "not-a-list"})


def test_delete(history, projection):
    sim_id = history.save("c-1", projection)
    history.delete(sim_id)
    with pytest.raises(NotFoundError):
        history.get(sim_id)
    with pytest.raises(NotFoundError):
        history.delete(sim_id)


def test_stats_without_simulations(history):
    stats = history.stats_for_client("c-1")
    assert stats.total_simulations == 0
    assert stats.average_final_value == 0.0
    assert stats.best_simulation is None
    assert stats.recent_activity.last_simulation is None
    assert stats.recent_activity.simulations_this_month == 0


def test_stats_with_simulations(history, builder):
    ids = _save_many(history, builder, 3)
    stats = history.stats_for_client("c-1")
    assert stats.total_simulations == 3
    assert stats.best_simulation.id == ids[-1]
    assert stats.recent_activity.last_simulation == history.get(ids[-1]).created_at
    assert stats.recent_activity.simulations_this_month == 3


def test_stats_counts_current_month_only(history, projection):
    old = history.get(history.save("c-1", projection))
    stats = client_stats([old], now=pd.Timestamp("2025-03-02"))
    assert stats.recent_activity.simulations_this_month == 0
    assert stats.total_simulations == 1


def test_to_dataframe(history, builder):
    _save_many(history, builder, 2)
    df = SimulationHistory.to_dataframe(history.list("c-1").simulations)
    assert list(df.columns) == [
        "id", "name", "tags", "final_value", "total_return", "annual_rate", "created_at"
    ]
    assert len(df) == 2
    assert SimulationHistory.to_dataframe([]).empty


def test_update_metadata_keywords(history, projection):
    sim_id = history.save("c-1", projection, tags=["a"])
    updated = history.update_metadata(sim_id, description="notes", tags=["b", "c"])
    assert updated.description == "notes"
    assert updated.tags == ("b", "c")
