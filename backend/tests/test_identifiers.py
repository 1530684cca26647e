import asyncio
from datetime import date

import pytest

from workforce_ingest.processing.identifiers import (
    IdentifierGenerator,
    abbreviate_client_name,
    counter_name,
    financial_year,
)
from workforce_ingest.storage import InMemoryDocumentStore


@pytest.mark.parametrize(
    "client, expected",
    [
        ("Tata Consultancy Services", "TCS"),
        ("TCS", "TCS"),
        ("Global Ventures", "GV"),
        ("Acme", "ACME"),
        ("Megacorp", "MEGA"),
        ("north-east logistics", "NEL"),
        ("", "CLIENT"),
        (None, "CLIENT"),
    ],
)
def test_abbreviate_client_name(client, expected):
    assert abbreviate_client_name(client) == expected


def test_financial_year_boundary():
    assert financial_year(date(2025, 3, 15)) == "2024-25"
    assert financial_year(date(2025, 3, 31)) == "2024-25"
    assert financial_year(date(2025, 4, 1)) == "2025-26"
    assert financial_year(date(2099, 12, 31)) == "2099-00"


def test_identifiers_are_sequential_per_client_and_year():
    store = InMemoryDocumentStore()

    async def _run():
        first = IdentifierGenerator(store, today=date(2025, 4, 10))
        await first.reserve(["TCS", "Acme", "Tata Consultancy Services"])
        ids = [first.next_id("TCS"), first.next_id("Acme"), first.next_id("Tata Consultancy Services")]

        second = IdentifierGenerator(store, org_prefix="XYZ", today=date(2025, 4, 11))
        await second.reserve(["TCS"])
        ids.append(second.next_id("TCS"))
        return ids

    assert asyncio.run(_run()) == [
        "CISS/TCS/2025-26/001",
        "CISS/ACME/2025-26/001",
        "CISS/TCS/2025-26/002",
        "XYZ/TCS/2025-26/003",
    ]
    assert store.counters[counter_name("TCS", "2025-26")] == 3


def test_new_financial_year_restarts_sequence():
    store = InMemoryDocumentStore()
    store.counters[counter_name("GV", "2024-25")] = 41

    async def _run():
        generator = IdentifierGenerator(store, today=date(2025, 4, 1))
        await generator.reserve(["Global Ventures"])
        return generator.next_id("Global Ventures")

    assert asyncio.run(_run()) == "CISS/GV/2025-26/001"


def test_next_id_without_reservation():
    generator = IdentifierGenerator(InMemoryDocumentStore(), today=date(2025, 4, 1))
    with pytest.raises(RuntimeError):
        generator.next_id("Acme")
