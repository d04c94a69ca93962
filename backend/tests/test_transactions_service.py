from datetime import datetime, timedelta

import pytest

from app.modules.auth.deps import UserContext
from app.modules.auth.models import User
from app.modules.transactions.models import Transaction
from app.modules.transactions.services import (
    ApproveTransaction,
    ComputeBalances,
    CreateTransaction,
    DecisionLocked,
    DeclineTransaction,
    Forbidden,
    ListChildren,
    ListTransactions,
    NotFound,
    _ToMoney,
)

MOM = UserContext(Id=1, Name="Mom", Role="admin")
ANN = UserContext(Id=2, Name="Ann", Role="child")
BEN = UserContext(Id=3, Name="Ben", Role="child")


@pytest.fixture
def family(db):
    for user in (MOM, ANN, BEN):
        db.add(User(Id=user.Id, Name=user.Name, PasswordHash="x", Role=user.Role))
    db.commit()
    return db


def _Create(db, user, child_name, amount=5, transaction_type="expense", description="Candy"):
    return CreateTransaction(
        db,
        user,
        description=description,
        amount=amount,
        transaction_type=transaction_type,
        child_name=child_name,
    )


def test_child_submission_is_pending(family):
    record = _Create(family, ANN, "Ann")

    assert record.Status == "pending"
    assert record.ApprovedBy is None
    assert float(record.Amount) == 5.0


def test_child_cannot_submit_for_someone_else(family):
    with pytest.raises(Forbidden):
        _Create(family, ANN, "Ben")
    assert family.query(Transaction).count() == 0


def test_admin_entry_is_approved_by_admin(family):
    record = _Create(family, MOM, "Ben", amount=12.5, transaction_type="income")

    assert record.Status == "approved"
    assert record.ApprovedBy == "Mom"


def test_admin_entry_requires_known_child(family):
    with pytest.raises(ValueError):
        _Create(family, MOM, "Mom")
    with pytest.raises(ValueError):
        _Create(family, MOM, "Nobody")


@pytest.mark.parametrize("amount", ["Infinity", float("nan"), "-Infinity", "abc"])
def test_non_finite_or_garbled_amounts_are_rejected(amount):
    with pytest.raises(ValueError):
        _ToMoney(amount)


@pytest.mark.parametrize("amount", [1e10, 1e30, "10000000000.00"])
def test_amounts_beyond_the_column_are_rejected(family, amount):
    with pytest.raises(ValueError):
        _Create(family, ANN, "Ann", amount=amount)
    assert family.query(Transaction).count() == 0


def test_largest_amount_that_fits_is_accepted(family):
    record = _Create(family, ANN, "Ann", amount="9999999999.99")
    assert float(record.Amount) == 9999999999.99


def test_children_only_see_their_own_rows(family):
    _Create(family, ANN, "Ann", description="Candy")
    _Create(family, BEN, "Ben", description="Comic")
    _Create(family, MOM, "Ben", description="Allowance", transaction_type="income")

    ann_rows = ListTransactions(family, ANN)
    ben_rows = ListTransactions(family, BEN)
    all_rows = ListTransactions(family, MOM)

    assert {row.ChildName for row in ann_rows} == {"Ann"}
    assert {row.ChildName for row in ben_rows} == {"Ben"}
    assert len(ben_rows) == 2
    assert len(all_rows) == 3


def test_list_is_newest_first(family):
    now = datetime(2026, 1, 1, 12, 0, 0)
    for offset, description in enumerate(["oldest", "middle", "newest"]):
        family.add(
            Transaction(
                Description=description,
                Amount=1,
                Type="income",
                ChildName="Ann",
                Status="pending",
                CreatedAt=now + timedelta(minutes=offset),
            )
        )
    family.commit()

    rows = ListTransactions(family, ANN)

    assert [row.Description for row in rows] == ["newest", "middle", "oldest"]


def test_approve_and_decline_set_status_and_decider(family):
    first = _Create(family, ANN, "Ann")
    second = _Create(family, ANN, "Ann")

    ApproveTransaction(family, MOM, first.Id)
    DeclineTransaction(family, MOM, second.Id)

    family.expire_all()
    assert family.get(Transaction, first.Id).Status == "approved"
    assert family.get(Transaction, first.Id).ApprovedBy == "Mom"
    assert family.get(Transaction, second.Id).Status == "declined"
    assert family.get(Transaction, second.Id).ApprovedBy == "Mom"


def test_decisions_are_admin_only(family):
    record = _Create(family, ANN, "Ann")
    with pytest.raises(Forbidden):
        ApproveTransaction(family, ANN, record.Id)
    with pytest.raises(Forbidden):
        DeclineTransaction(family, ANN, record.Id)


def test_deciding_unknown_transaction_is_not_found(family):
    with pytest.raises(NotFound):
        ApproveTransaction(family, MOM, 999)
    with pytest.raises(NotFound):
        DeclineTransaction(family, MOM, 999)


def test_redeciding_overwrites_by_default(family):
    record = _Create(family, ANN, "Ann")

    ApproveTransaction(family, MOM, record.Id)
    ApproveTransaction(family, MOM, record.Id)
    updated = DeclineTransaction(family, MOM, record.Id)

    assert updated.Status == "declined"


def test_lock_policy_blocks_changing_a_decision(family, monkeypatch):
    monkeypatch.setenv("TRANSACTIONS_LOCK_DECISIONS", "true")
    record = _Create(family, ANN, "Ann")

    ApproveTransaction(family, MOM, record.Id)
    ApproveTransaction(family, MOM, record.Id)
    with pytest.raises(DecisionLocked):
        DeclineTransaction(family, MOM, record.Id)


def test_list_children_sorted(family):
    assert ListChildren(family) == ["Ann", "Ben"]


def test_balances_count_only_approved_rows():
    rows = [
        Transaction(ChildName="Ann", Amount=10, Type="income", Status="approved"),
        Transaction(ChildName="Ann", Amount=2.5, Type="expense", Status="approved"),
        Transaction(ChildName="Ann", Amount=100, Type="income", Status="pending"),
        Transaction(ChildName="Ben", Amount=4, Type="expense", Status="approved"),
        Transaction(ChildName="Ben", Amount=50, Type="income", Status="declined"),
        Transaction(ChildName="Cal", Amount=1, Type="income", Status="pending"),
    ]

    summary = ComputeBalances(rows)

    assert summary["balance"] == pytest.approx(3.5)
    assert summary["children"] == [
        {"name": "Ann", "balance": 7.5},
        {"name": "Ben", "balance": -4.0},
        {"name": "Cal", "balance": 0.0},
    ]


def test_balances_of_nothing_is_zero():
    assert ComputeBalances([]) == {"balance": 0.0, "children": []}
