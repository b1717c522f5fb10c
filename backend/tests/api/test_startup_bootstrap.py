"""Startup bootstrap — knowledge indexing, sample seeding and ledger re-indexing.

Tests cover:
    - Transactions already in the store are indexed for similarity at startup
    - Seeding only happens on an empty ledger, and seeded data is indexed once
"""

from finledger.config import Settings
from finledger.core.domain_types import Category
from finledger.core.knowledge_base import FINANCIAL_KNOWLEDGE
from finledger.core.sample_data import generate_sample_transactions
from finledger.main import _bootstrap

from tests.services.fakes import make_tx


async def test_existing_transactions_are_indexed(services):
    await services.ledger.append_transaction(make_tx("5.40", "Starbucks coffee"))
    await services.ledger.append_transaction(make_tx("4.10", "Starbucks espresso"))
    await services.ledger.append_transaction(make_tx("1200", "Rent", Category.HOUSING))

    await _bootstrap(services, Settings(seed_sample_data=False))

    assert len(services.retriever.index) == len(FINANCIAL_KNOWLEDGE) + 3
    context = await services.retriever.retrieve_context("what have I spent on coffee")
    assert "Starbucks coffee" in [m.metadata["description"] for m in context.similar_transactions]
    category, _ = await services.retriever.suggest_category("Starbucks latte")
    assert category == Category.FOOD


async def test_seeding_skips_non_empty_ledger(services):
    await services.ledger.append_transaction(make_tx("5.40", "Starbucks coffee"))

    await _bootstrap(services, Settings(seed_sample_data=True))

    assert [tx.description for tx in await services.ledger.list_transactions()] == [
        "Starbucks coffee",
    ]


async def test_seeded_ledger_is_indexed(services):
    expected = len(generate_sample_transactions())

    await _bootstrap(services, Settings(seed_sample_data=True))

    assert len(await services.ledger.list_transactions()) == expected
    assert len(services.retriever.index) == len(FINANCIAL_KNOWLEDGE) + expected
