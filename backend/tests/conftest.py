"""Pytest configuration and fixtures."""

import pytest
from flask import g

from govplane import create_app
from govplane.actors import Actor
from govplane.extensions import db
from govplane.models import Account, User, Withdrawal
from govplane.realtime import feed
from govplane.utils.jwt_utils import create_operator_token


@pytest.fixture
def app():
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test-secret-key-0123456789-abcdefghij",
        "GOVERNANCE_ALLOWED_PAGES": ["/governor"],
        "GOVERNANCE_CAS_RETRIES": 3,
    })

    # Requests in a test share the fixture's app context, and with it ``g``;
    # drop the operator Flask-Login cached for the previous request.
    @app.before_request
    def _forget_operator():
        g.pop("_login_user", None)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
    feed.clear_subscribers()


@pytest.fixture
def governor() -> Actor:
    return Actor(id="gov-1", name="Grace Governor", role="governor")


@pytest.fixture
def admin() -> Actor:
    return Actor(id="adm-1", name="Adam Admin", role="admin")


@pytest.fixture
def account(app) -> Account:
    acct = Account(
        name="Alice Investor",
        email="alice@example.com",
        country="Kenya",
        balance=1000.0,
        restrictions={},
        bank_accounts=[],
        crypto_wallets=[],
        approval_conditions=[],
    )
    db.session.add(acct)
    db.session.commit()
    return acct


@pytest.fixture
def withdrawal(account) -> Withdrawal:
    w = Withdrawal(account_id=account.id, amount=250.0, method="bank", destination="KCB ****1234", status="Pending")
    db.session.add(w)
    db.session.commit()
    return w


@pytest.fixture
def client(app):
    return app.test_client()


def _operator(name: str, email: str, role: str) -> dict:
    user = User(name=name, email=email, role=role)
    db.session.add(user)
    db.session.commit()
    return {"Authorization": f"Bearer {create_operator_token(user)}"}


@pytest.fixture
def governor_headers(app) -> dict:
    return _operator("Grace Governor", "grace@govplane.test", "governor")


@pytest.fixture
def admin_headers(app) -> dict:
    return _operator("Adam Admin", "adam@govplane.test", "admin")
