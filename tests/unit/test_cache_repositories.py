"""Unit tests for the local cache repositories"""

import dataclasses

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tropipay_wallet.domain.models import Account, Beneficiary
from tropipay_wallet.infrastructure.database.repositories import (
    AccountCacheRepository,
    BeneficiaryCacheRepository,
    UserRepository,
)


def make_account(account_id: str, balance: int = 10000, **extra) -> Account:
    return Account.from_api({"accountId": account_id, "currency": "USD", "balance": balance, **extra})


def test_user_upsert_keeps_stable_id(db: Session):
    users = UserRepository(db)

    first = users.upsert("client-a", {"name": "Ana"}, "development")
    second = users.upsert("client-a", {"name": "Ana Perez"}, "production")
    other = users.upsert("client-b", {}, "development")

    assert first.id == second.id
    assert other.id != first.id
    stored = users.get_by_id(first.id)
    assert stored.profile == {"name": "Ana Perez"}
    assert stored.environment == "production"


def test_account_cache_replaces_whole_list(db: Session):
    user = UserRepository(db).upsert("client-a", {}, "development")
    cache = AccountCacheRepository(db)

    cache.save(user.id, [make_account("acc-1"), make_account("acc-2")])
    cache.save(user.id, [make_account("acc-3", balance=2550, available=2000)])

    cached = cache.get(user.id)
    assert [account.account_id for account in cached] == ["acc-3"]
    assert cached[0].balance.minor == 2550
    assert cached[0].to_dict()["available"] == 20.0


def test_account_cache_preserves_order(db: Session):
    user = UserRepository(db).upsert("client-a", {}, "development")
    cache = AccountCacheRepository(db)

    cache.save(user.id, [make_account("acc-b"), make_account("acc-a"), make_account("acc-c")])

    assert [account.account_id for account in cache.get(user.id)] == ["acc-b", "acc-a", "acc-c"]


def test_failed_save_keeps_previous_list(db: Session):
    """A failed replace rolls back the delete as well"""
    user = UserRepository(db).upsert("client-a", {}, "development")
    cache = AccountCacheRepository(db)
    cache.save(user.id, [make_account("acc-1")])

    broken = dataclasses.replace(make_account("acc-2"), account_id=None)
    with pytest.raises(IntegrityError):
        cache.save(user.id, [make_account("acc-3"), broken])

    assert [account.account_id for account in cache.get(user.id)] == ["acc-1"]


def test_cache_is_per_user(db: Session):
    users = UserRepository(db)
    ana = users.upsert("client-a", {}, "development")
    ben = users.upsert("client-b", {}, "development")
    cache = AccountCacheRepository(db)

    cache.save(ana.id, [make_account("acc-ana")])
    cache.save(ben.id, [])

    assert [account.account_id for account in cache.get(ana.id)] == ["acc-ana"]
    assert cache.get(ben.id) == []


def test_beneficiary_cache_round_trip(db: Session):
    user = UserRepository(db).upsert("client-a", {}, "development")
    cache = BeneficiaryCacheRepository(db)
    beneficiaries = [
        Beneficiary.from_api({"id": "ben-1", "type": 0, "firstName": "Carlos", "lastName": "Lopez", "country": "CU"}),
        Beneficiary.from_api({"id": "ben-2", "type": 1, "alias": "Maria", "country": "ES"}),
    ]

    cache.save(user.id, beneficiaries)
    cached = cache.get(user.id)

    assert [(b.id, b.type, b.name) for b in cached] == [
        ("ben-1", "INTERNAL", "Carlos Lopez"),
        ("ben-2", "EXTERNAL", "Maria"),
    ]


def test_saving_empty_list_clears_cache(db: Session):
    user = UserRepository(db).upsert("client-a", {}, "development")
    cache = AccountCacheRepository(db)
    cache.save(user.id, [make_account("acc-1"), make_account("acc-2")])

    cache.save(user.id, [])

    assert cache.get(user.id) == []


def test_get_without_prior_save(db: Session):
    assert AccountCacheRepository(db).get(12345) == []
    assert BeneficiaryCacheRepository(db).get(12345) == []
