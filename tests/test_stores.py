"""Tests for vendor and transaction persistence"""

import pytest
from datetime import datetime
from spend_tracker.utils.errors import NotFoundError, StorageError, ValidationError


# Vendors

def test_create_and_get_vendor(vendor_store):
    vendor = vendor_store.create_vendor("GitHub", 100.0, "Developer Tools", alternative_names=["Github Inc"])

    stored = vendor_store.get_vendor(vendor.id)
    assert stored == vendor
    assert stored.active is True
    assert vendor_store.get_vendor("missing") is None


def test_create_vendor_rejects_invalid(vendor_store):
    """Blank names and negative budgets never reach the store"""
    with pytest.raises(ValidationError):
        vendor_store.create_vendor("   ", 100.0, "Misc")
    with pytest.raises(ValidationError):
        vendor_store.create_vendor("Slack", -1.0, "Communication")
    assert vendor_store.list_vendors() == []


def test_list_vendors_sorted_and_filtered(vendor_store):
    slack = vendor_store.create_vendor("Slack", 250.0, "Communication")
    figma = vendor_store.create_vendor("figma", 150.0, "Design")
    github = vendor_store.create_vendor("GitHub", 100.0, "Developer Tools")
    vendor_store.soft_delete_vendor(slack.id)

    assert [v.name for v in vendor_store.list_vendors()] == ["figma", "GitHub", "Slack"]
    assert [v.id for v in vendor_store.list_vendors(active_only=True)] == [figma.id, github.id]


def test_update_vendor(vendor_store):
    vendor = vendor_store.create_vendor("GitHub", 100.0, "Developer Tools")

    updated = vendor_store.update_vendor(vendor.id, monthly_budget=150.0, alternative_names=["GITHUB.COM"])

    assert updated.monthly_budget == 150.0
    assert updated.alternative_names == ["GITHUB.COM"]
    assert updated.created_at == vendor.created_at
    assert updated.updated_at >= vendor.updated_at
    assert vendor_store.get_vendor(vendor.id).monthly_budget == 150.0


def test_update_vendor_errors(vendor_store):
    vendor = vendor_store.create_vendor("GitHub", 100.0, "Developer Tools")

    with pytest.raises(NotFoundError):
        vendor_store.update_vendor("missing", monthly_budget=1.0)
    with pytest.raises(ValidationError):
        vendor_store.update_vendor(vendor.id, id="hijack")
    with pytest.raises(ValidationError):
        vendor_store.update_vendor(vendor.id, monthly_budget=-5)


def test_soft_delete_keeps_record(vendor_store):
    vendor = vendor_store.create_vendor("Heroku", 500.0, "Hosting")

    vendor_store.soft_delete_vendor(vendor.id)

    assert vendor_store.get_vendor(vendor.id).active is False


def test_list_by_category_and_search(vendor_store):
    github = vendor_store.create_vendor("GitHub", 100.0, "Developer Tools", alternative_names=["GITHUB.COM"])
    linear = vendor_store.create_vendor("Linear", 80.0, "Developer Tools")
    vendor_store.create_vendor("Slack", 250.0, "Communication")

    assert {v.id for v in vendor_store.list_by_category("Developer Tools")} == {github.id, linear.id}
    assert [v.id for v in vendor_store.search_vendors("git")] == [github.id]
    assert [v.id for v in vendor_store.search_vendors(".com")] == [github.id]


# Transactions

def test_bulk_insert_and_queries(transaction_store, make_transaction):
    march_matched = make_transaction("GITHUB INC", 120.0, date=datetime(2025, 3, 5), vendor_id="vnd_github")
    march_unmatched = make_transaction("Notion Labs", 40.0, date=datetime(2025, 3, 20))
    february = make_transaction("GITHUB INC", 100.0, date=datetime(2025, 2, 5), vendor_id="vnd_github")

    assert transaction_store.bulk_insert([march_matched, march_unmatched, february]) == 3

    assert [t.id for t in transaction_store.list_by_month("2025-03")] == [march_unmatched.id, march_matched.id]
    assert [t.id for t in transaction_store.list_by_vendor_and_month("vnd_github", "2025-03")] == [march_matched.id]
    assert [t.id for t in transaction_store.list_unmatched("2025-03")] == [march_unmatched.id]
    assert [t.id for t in transaction_store.list_by_date_range(datetime(2025, 1, 1), datetime(2025, 3, 10))] == [
        march_matched.id, february.id
    ]
    assert transaction_store.get_transaction(february.id) == february


def test_external_id_lookup(transaction_store, make_transaction):
    transaction = make_transaction(external_id="ramp_txn_1")
    transaction_store.bulk_insert([transaction])

    assert transaction_store.exists_by_external_id("ramp_txn_1")
    assert not transaction_store.exists_by_external_id("ramp_txn_2")
    assert transaction_store.existing_external_ids(["ramp_txn_1", "ramp_txn_2", "ramp_txn_1"]) == {"ramp_txn_1"}


def test_bulk_insert_rejects_existing_external_id(transaction_store, make_transaction):
    """A batch containing a stored external id is rejected whole"""
    transaction_store.bulk_insert([make_transaction(external_id="ramp_txn_1")])
    fresh = make_transaction(external_id="ramp_txn_2")

    with pytest.raises(StorageError):
        transaction_store.bulk_insert([fresh, make_transaction(external_id="ramp_txn_1")])

    assert not transaction_store.exists_by_external_id("ramp_txn_2")
    assert transaction_store.get_transaction(fresh.id) is None


def test_bulk_insert_rejects_in_batch_duplicates(transaction_store, make_transaction):
    with pytest.raises(StorageError):
        transaction_store.bulk_insert([make_transaction(external_id="dup"), make_transaction(external_id="dup")])


def test_bulk_insert_empty(transaction_store):
    assert transaction_store.bulk_insert([]) == 0


def test_update_vendor_remaps(transaction_store, make_transaction):
    transaction = make_transaction("Notion Labs", 40.0)
    transaction_store.bulk_insert([transaction])

    remapped = transaction_store.update_vendor(transaction.id, "vnd_notion")

    assert remapped.vendor_id == "vnd_notion"
    assert transaction_store.get_transaction(transaction.id).vendor_id == "vnd_notion"
    assert transaction_store.update_vendor(transaction.id, None).vendor_id is None

    with pytest.raises(NotFoundError):
        transaction_store.update_vendor("missing", "vnd_notion")


def test_transaction_month_derived_from_date(make_transaction):
    """Timezone-aware dates are stored as naive UTC and bucketed by that"""
    from datetime import timezone, timedelta
    from spend_tracker.models import Transaction

    late_evening_pacific = datetime(2025, 3, 31, 20, 0, tzinfo=timezone(timedelta(hours=-7)))
    transaction = Transaction(
        id="t1", external_id="e1", merchant_name="GITHUB", amount=10.0, date=late_evening_pacific
    )

    assert transaction.date == datetime(2025, 4, 1, 3, 0)
    assert transaction.month == "2025-04"

    parsed = Transaction.model_validate(
        {'id': "t2", 'external_id': "e2", 'merchant_name': "X", 'amount': 1.0, 'date': "2025-03-05T10:00:00Z"}
    )
    assert parsed.month == "2025-03"
