from __future__ import annotations

from dateutil import parser as date_parser

from app.schemas import Reading
from app.services.state import StateCache, resolve_number, NUMERIC_ALIASES


def test_first_reading_fills_only_given_fields():
    cache = StateCache()
    reading = cache.apply({"temperature": 24.5})

    assert reading.temperature == 24.5
    defaults = Reading()
    assert reading.humidity == defaults.humidity
    assert reading.pressure == defaults.pressure
    assert [reading.gas1, reading.gas2, reading.gas3, reading.gas4] == [0.0, 0.0, 0.0, 0.0]
    assert reading.time  # server fallback
    date_parser.isoparse(reading.time)


def test_omitted_fields_keep_previous_values():
    cache = StateCache()
    cache.apply({"temperature": 20.0, "humidity": 40.0, "pressure": 1008.2, "EtOH3": 12})
    reading = cache.apply({"temperature": 21.0})

    assert reading.temperature == 21.0
    assert reading.humidity == 40.0
    assert reading.pressure == 1008.2
    assert reading.gas3 == 12.0


def test_capitalized_field_names_are_accepted():
    cache = StateCache()
    reading = cache.apply({"Temperature": "23.75", "Humidity": 55, "Pressure": 1001})
    assert (reading.temperature, reading.humidity, reading.pressure) == (23.75, 55.0, 1001.0)


def test_named_alias_wins_over_indexed_array():
    cache = StateCache()
    reading = cache.apply({"EtOH1": 1.5, "ADC_Value": [9, 8, 7, 6]})

    assert reading.gas1 == 1.5
    assert (reading.gas2, reading.gas3, reading.gas4) == (8.0, 7.0, 6.0)


def test_alias_list_order_is_respected():
    payload = {"ADC2": 3, "EtOH2": 2, "gas2": 1}
    assert resolve_number(payload, NUMERIC_ALIASES["gas2"]) == 1.0
    del payload["gas2"]
    assert resolve_number(payload, NUMERIC_ALIASES["gas2"]) == 2.0
    del payload["EtOH2"]
    assert resolve_number(payload, NUMERIC_ALIASES["gas2"]) == 3.0


def test_short_array_falls_back_to_previous_value():
    cache = StateCache()
    cache.apply({"gas4": 4.4})
    reading = cache.apply({"ADC_Value": [1, 2]})
    assert (reading.gas1, reading.gas2, reading.gas4) == (1.0, 2.0, 4.4)


def test_non_numeric_value_is_skipped():
    cache = StateCache()
    cache.apply({"humidity": 61.0})
    reading = cache.apply({"humidity": "n/a", "temperature": None})
    assert reading.humidity == 61.0
    assert reading.temperature == 0.0

    reading = cache.apply({"EtOH1": "bad", "ADC1": 7})
    assert reading.gas1 == 7.0


def test_device_time_is_kept_when_valid():
    cache = StateCache()
    reading = cache.apply({"Time": "2025-03-01T10:15:00Z", "temperature": 1})
    assert reading.time == "2025-03-01T10:15:00Z"


def test_invalid_time_uses_server_time():
    cache = StateCache()
    reading = cache.apply({"time": "yesterday-ish"})
    assert reading.time != "yesterday-ish"
    date_parser.isoparse(reading.time)


def test_snapshot_has_every_field():
    cache = StateCache()
    cache.apply({"temperature": 24.5})
    snapshot = cache.snapshot()
    assert set(snapshot) == {
        "time", "temperature", "humidity", "pressure", "gas1", "gas2", "gas3", "gas4",
    }
    assert snapshot["temperature"] == 24.5
