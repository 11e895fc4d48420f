"""Shared test fixtures"""

import itertools
from datetime import datetime

import pytest

from spend_tracker.db import MemoryBackend, VendorStore, TransactionStore
from spend_tracker.models import Vendor, Transaction

_ids = itertools.count(1)


@pytest.fixture
def make_vendor():
    """Factory for Vendor models with sensible defaults"""
    def _make(name="GitHub", monthly_budget=100.0, alternative_names=None, category="Developer Tools", **kwargs):
        return Vendor(
            id=kwargs.pop('id', f"vnd_{next(_ids)}"),
            name=name,
            monthly_budget=monthly_budget,
            alternative_names=alternative_names or [],
            category=category,
            **kwargs
        )
    return _make


@pytest.fixture
def make_transaction():
    """Factory for Transaction models; month is derived from date"""
    def _make(merchant_name="GITHUB INC", amount=120.0, date=datetime(2025, 3, 5, 14, 22), vendor_id=None, **kwargs):
        n = next(_ids)
        return Transaction(
            id=kwargs.pop('id', f"txn_{n}"),
            external_id=kwargs.pop('external_id', f"ramp_{n}"),
            merchant_name=merchant_name,
            amount=amount,
            date=date,
            vendor_id=vendor_id,
            **kwargs
        )
    return _make


@pytest.fixture
def backend():
    return MemoryBackend()


@pytest.fixture
def vendor_store(backend):
    return VendorStore(backend)


@pytest.fixture
def transaction_store(backend):
    return TransactionStore(backend)
