import pytest

from weathercard.card import RecordContext, WeatherCard
from weathercard.services.records import RecordStore, RecordStoreError


@pytest.fixture
def store(tmp_path):
    return RecordStore(tmp_path / "records.json")


def collect():
    deliveries = []
    errors = []
    return deliveries, errors, deliveries.append, errors.append


def test_put_and_get_round_trip(store):
    store.put("001A", "Account", {"BillingCity": "Berlin"})
    record = store.get("001A")
    assert record.type == "Account"
    assert record.fields == {"BillingCity": "Berlin"}


def test_get_missing_record(store):
    with pytest.raises(RecordStoreError):
        store.get("missing")


def test_put_rejects_empty_id_and_type(store):
    with pytest.raises(RecordStoreError):
        store.put("  ", "Account", {})
    with pytest.raises(RecordStoreError):
        store.put("001A", "  ", {})


def test_subscribe_delivers_requested_fields_immediately(store):
    store.put("001A", "Account", {"BillingCity": "Berlin", "Phone": "123"})
    deliveries, errors, on_data, on_error = collect()

    store.subscribe("001A", ["BillingCity"], on_data, on_error)

    assert deliveries == [{"BillingCity": "Berlin"}]
    assert errors == []


def test_put_notifies_matching_subscribers(store):
    store.put("001A", "Account", {"BillingCity": "Berlin"})
    deliveries, _, on_data, on_error = collect()
    other, _, other_data, other_error = collect()
    store.subscribe("001A", ["BillingCity"], on_data, on_error)
    store.subscribe("003C", ["MailingCity"], other_data, other_error)

    store.put("001A", "Account", {"BillingCity": "Hamburg"})

    assert deliveries[-1] == {"BillingCity": "Hamburg"}
    assert other == []


def test_missing_record_goes_to_error_callback(store):
    deliveries, errors, on_data, on_error = collect()
    store.subscribe("001A", ["BillingCity"], on_data, on_error)
    assert deliveries == []
    assert isinstance(errors[0], RecordStoreError)


def test_corrupt_file_reported_on_refresh(store):
    store.put("001A", "Account", {"BillingCity": "Berlin"})
    deliveries, errors, on_data, on_error = collect()
    store.subscribe("001A", ["BillingCity"], on_data, on_error)

    store.path.write_text("{not json")
    store.refresh()

    assert len(deliveries) == 1
    assert "not valid JSON" in str(errors[0])


def test_unsubscribe_stops_deliveries(store):
    store.put("001A", "Account", {"BillingCity": "Berlin"})
    deliveries, _, on_data, on_error = collect()
    subscription = store.subscribe("001A", ["BillingCity"], on_data, on_error)

    subscription.unsubscribe()
    store.put("001A", "Account", {"BillingCity": "Hamburg"})
    store.refresh()

    assert deliveries == [{"BillingCity": "Berlin"}]


@pytest.mark.asyncio
async def test_card_follows_record_updates(store, lookup):
    store.put("001A", "Account", {"BillingCity": "Berlin"})
    card = WeatherCard(lookup, record=RecordContext("001A", "Account"), records=store)

    card.connect()
    await card.drain()
    assert lookup.calls == ["Berlin"]

    store.put("001A", "Account", {"BillingCity": "Hamburg"})
    await card.drain()
    assert card.city == "Hamburg"
    assert lookup.calls == ["Berlin", "Hamburg"]

    card.disconnect()
    store.put("001A", "Account", {"BillingCity": "Munich"})
    assert card.city == "Hamburg"


def test_put_leaves_corrupt_file_untouched(store):
    store.path.write_text('{"001A": {"type": "Account", "fields": {"BillingCity": "Berlin"}},')

    with pytest.raises(RecordStoreError):
        store.put("003C", "Contact", {"MailingCity": "Oslo"})

    assert store.path.read_text() == (
        '{"001A": {"type": "Account", "fields": {"BillingCity": "Berlin"}},'
    )


def test_put_keeps_file_with_invalid_record(store):
    original = '{"001A": {"type": "Account"}, "bad": {"fields": {}}}'
    store.path.write_text(original)

    with pytest.raises(RecordStoreError, match="bad"):
        store.put("003C", "Contact", {"MailingCity": "Oslo"})

    assert store.path.read_text() == original
