import json
import threading
from dataclasses import replace
from datetime import date
from pathlib import Path

import pytest

from core.schema import ClientRecord, Goal, StoredEvent, Wallet
from history.service import SimulationHistory
from store.loader import load_clients_json, parse_client
from store.memory import InMemoryStore
from store.validators import validate_client_record

TODAY = date(2025, 1, 15)


def test_parse_client_defaults():
    client = parse_client(
        {
            "id": 7,
            "wallet": {"total_value": "1500.5", "allocation": {"cash": 100}},
            "events": [{"type": "Savings", "value": 10, "frequency": "monthly", "date": "2025-02-10"}],
            "goals": [{"type": "Car", "amount": 20000, "target_at": "2027-06-01T00:00:00Z"}],
        }
    )
    assert client.id == "7"
    assert client.wallet_total == 1500.5
    assert client.events[0].id == "7-event-0"
    assert client.events[0].date == date(2025, 2, 10)
    assert client.goals[0].target_at == date(2027, 6, 1)


def test_parse_client_requires_fields():
    with pytest.raises(ValueError):
        parse_client({"id": "x", "goals": [{"type": "Car", "amount": 1}]})
    with pytest.raises(ValueError):
        parse_client({"id": "x", "events": [{"type": "Bad", "value": 1, "date": "not a date"}]})


def test_load_clients_json_accepts_both_shapes(tmp_path):
    rows = [{"id": "a"}, {"id": "b", "name": "Bea"}]
    as_list = tmp_path / "list.json"
    as_list.write_text(json.dumps(rows), encoding="utf-8")
    as_obj = tmp_path / "obj.json"
    as_obj.write_text(json.dumps({"clients": rows}), encoding="utf-8")

    assert [c.id for c in load_clients_json(as_list)] == ["a", "b"]
    assert [c.name for c in load_clients_json(as_obj)] == ["", "Bea"]


def test_memory_store_duplicate_and_unknown(store, history, builder):
    sim_id = history.save("c-1", builder.build_for_client("c-1"))
    record = store.get_simulation(sim_id)
    with pytest.raises(KeyError):
        store.create_simulation(record)
    store.delete_simulation(sim_id)
    with pytest.raises(KeyError):
        store.update_simulation(record)
    assert store.find_simulations([sim_id, "other"]) == []


def test_memory_store_clients():
    s = InMemoryStore([ClientRecord(id="a")])
    s.add_client(ClientRecord(id="b"))
    assert s.client_ids == ["a", "b"]
    assert s.get_client("zzz") is None


class TestValidateClientRecord:
    def test_clean_record(self, store):
        result = validate_client_record(store.get_client("c-1"), today=TODAY)
        assert result.is_valid
        assert result.warnings == []
        assert "All checks passed" in result.summary()
        assert result.client_id == "c-1"
        assert result.summary().startswith("Client c-1:")

    def test_errors(self):
        client = ClientRecord(
            id="x",
            wallet=Wallet(total_value=-10.0, allocation={"cash": -5.0, "stocks": 105.0}),
            goals=(Goal(id="g", type="t", amount=0.0, target_at=date(2030, 1, 1)),),
        )
        result = validate_client_record(client, today=TODAY)
        assert not result.is_valid
        assert len(result.errors) == 3
        assert "ERRORS (3)" in result.summary()

    def test_warnings(self):
        client = ClientRecord(
            id="x",
            wallet=Wallet(total_value=10.0, allocation={"cash": 50.0}),
            events=(
                StoredEvent(id="e1", type="t", value=1.0, frequency="weekly", date=TODAY),
                StoredEvent(id="e2", type="t", value=1.0, frequency="monthly", date=None),
            ),
            goals=(Goal(id="g", type="t", amount=10.0, target_at=date(2020, 1, 1)),),
        )
        result = validate_client_record(client, today=TODAY)
        assert result.is_valid
        assert len(result.warnings) == 4
        assert any("sum to 50.0" in w for w in result.warnings)


def test_sample_clients_file_loads():
    path = Path(__file__).resolve().parent.parent / "data" / "sample_clients.json"
    clients = load_clients_json(path)
    assert [c.id for c in clients] == ["c-001", "c-002", "c-003"]
    assert all(validate_client_record(c, today=TODAY).is_valid for c in clients)


def test_memory_store_concurrent_create_and_list(store, builder):
    projection = builder.build_for_client("c-1")
    history = SimulationHistory(store)
    template = history.get(history.save("c-1", projection))
    errors = []
    done = threading.Event()

    def writer():
        try:
            for i in range(5_000):
                store.create_simulation(replace(template, id=f"bulk-{i}"))
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)
        finally:
            done.set()

    t = threading.Thread(target=writer)
    t.start()
    while not done.is_set():
        try:
            store.list_simulations("c-1", limit=10)
            store.count_simulations("c-1")
        except Exception as exc:  # noqa: BLE001
            errors.append(exc)
            break
    t.join()
    assert errors == []
    assert store.count_simulations("c-1") == 5_001


@pytest.mark.parametrize("target_at", ["", None])
def test_parse_client_rejects_empty_goal_date(target_at):
    with pytest.raises(ValueError, match="target_at"):
        parse_client({"id": "x", "goals": [{"type": "Car", "amount": 1, "target_at": target_at}]})
