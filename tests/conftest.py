# tests/conftest.py
# -*- coding: utf-8 -*-
import os
import sys
import uuid
import pathlib
import importlib
import tempfile
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import event


# =====================================================================================
# Localização do projeto (garante que "syshair_app" esteja no sys.path)
# =====================================================================================
def _add_project_root():
    here = pathlib.Path(__file__).resolve()
    for base in [here.parent, here.parent.parent, pathlib.Path.cwd()]:
        for candidate in [base, *base.parents]:
            if (candidate / "syshair_app").is_dir():
                if str(candidate) not in sys.path:
                    sys.path.insert(0, str(candidate))
                return candidate
    env_root = os.getenv("PROJECT_ROOT")
    if env_root and os.path.isdir(env_root):
        if env_root not in sys.path:
            sys.path.insert(0, env_root)
        return pathlib.Path(env_root)
    return None


PROJECT_ROOT = _add_project_root()


# =====================================================================================
# Ambiente de testes unitários (sem serviços externos, sem scheduler)
# =====================================================================================
@pytest.fixture(autouse=True, scope="session")
def _testing_env():
    os.environ["APP_ENV"] = "testing"
    os.environ["FLASK_ENV"] = "testing"
    os.environ["TESTING"] = "1"
    os.environ["DISABLE_SCHEDULER"] = "1"
    os.environ.setdefault("SECRET_KEY", "testing-secret")
    yield


def _import(modpath, name=None):
    mod = importlib.import_module(modpath)
    return getattr(mod, name) if name else mod


# =====================================================================================
# App Flask com SQLite temporário e schema criado uma vez por sessão
# =====================================================================================
@pytest.fixture(scope="session")
def app(_testing_env):
    fd, db_path = tempfile.mkstemp(prefix="syshair_test_", suffix=".sqlite")
    os.close(fd)

    os.environ["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{db_path}?check_same_thread=0&timeout=30"
    os.environ["DATABASE_URL"] = os.environ["SQLALCHEMY_DATABASE_URI"]

    try:
        wsgi = _import("syshair_app.wsgi", None)
        app = wsgi.app
    except Exception as e:
        raise RuntimeError(f"Falha ao importar a app Flask: {e} (sys.path={sys.path})")

    from syshair_app.extensions import db

    # PRAGMAs sempre que o engine abrir uma conexão
    def _set_sqlite_pragmas(dbapi_conn, _conn_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()

    with app.app_context():
        if db.engine.url.get_backend_name() == "sqlite":
            event.listen(db.engine, "connect", _set_sqlite_pragmas)
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.engine.dispose()
    try:
        os.remove(db_path)
    except OSError:
        pass


# =====================================================================================
# Cada teste começa com as tabelas vazias
# =====================================================================================
@pytest.fixture(autouse=True)
def _clean_tables(app):
    yield
    from syshair_app.extensions import db
    with app.app_context():
        db.session.rollback()
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


@pytest.fixture(autouse=True)
def _default_senders():
    from syshair_app.services.notifications import reset_senders
    yield
    reset_senders()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def db_session(app):
    from syshair_app.extensions import db
    with app.app_context():
        try:
            yield db.session
        finally:
            db.session.rollback()
            db.session.close()


# =====================================================================================
# Mocks de serviços externos
#   - mercadopago.SDK (sem rede; cada teste de billing preenche as respostas por id)
# =====================================================================================
class FakeResource:
    def __init__(self, api, table):
        self._api = api
        self._table = table

    def get(self, resource_id):
        self._api.calls.append(str(resource_id))
        answer = self._table.get(str(resource_id), (404, {"message": "not found"}))
        if isinstance(answer, Exception):
            raise answer
        code, body = answer
        return {"status": code, "response": body}


class FakeMercadoPago:
    """Estado compartilhado pelas instâncias de ``FakeSDK`` de um teste."""

    def __init__(self):
        self.preapprovals = {}
        self.payments = {}
        self.calls = []
        self.tokens = []

    def sdk_class(self):
        api = self

        class FakeSDK:
            def __init__(self, access_token, request_options=None):
                api.tokens.append(access_token)
                self.request_options = request_options

            def preapproval(self):
                return FakeResource(api, api.preapprovals)

            def payment(self):
                return FakeResource(api, api.payments)

        return FakeSDK


@pytest.fixture(autouse=True)
def mp_sdk(monkeypatch):
    import mercadopago
    api = FakeMercadoPago()
    monkeypatch.setattr(mercadopago, "SDK", api.sdk_class())
    yield api


# =====================================================================================
# Usuários, salões e clientes logados
# =====================================================================================
@pytest.fixture
def user_admin(db_session):
    from syshair_app.models import User
    u = User(name="Admin", email=f"admin+{uuid.uuid4().hex[:6]}@test.com", is_admin=True)
    u.set_password("secret123")
    db_session.add(u); db_session.commit()
    return u


@pytest.fixture
def user_normal(db_session):
    from syshair_app.models import User
    u = User(name="User", email=f"user+{uuid.uuid4().hex[:6]}@test.com")
    u.set_password("secret123")
    db_session.add(u); db_session.commit()
    return u


@pytest.fixture
def make_salon(db_session):
    from syshair_app.models import Salon

    def _make(owner, name="Salão Teste", **kw):
        s = Salon(owner_id=owner.id, name=name, slug=f"salao-{uuid.uuid4().hex[:8]}", **kw)
        db_session.add(s); db_session.commit()
        return s
    return _make


@pytest.fixture
def salon(make_salon, user_normal):
    return make_salon(user_normal)


@pytest.fixture
def make_client(db_session):
    from syshair_app.models import Client

    def _make(salon, name="Cliente", phone=None, **kw):
        c = Client(salon_id=salon.id, name=name, phone=phone, **kw)
        db_session.add(c); db_session.commit()
        return c
    return _make


@pytest.fixture
def make_subscription(db_session):
    from syshair_app.models import Subscription

    def _make(salon, status="trial", is_trial=True, trial_days=7, **kw):
        now = datetime.utcnow()
        data = dict(
            salon_id=salon.id,
            status=status,
            is_trial=is_trial,
            trial_start_date=now,
            trial_end_date=now + timedelta(days=trial_days),
            plan_name="SysHair Premium",
            amount=Decimal("39.90"),
            external_reference=salon.id,
        )
        data.update(kw)
        sub = Subscription(**data)
        db_session.add(sub); db_session.commit()
        return sub
    return _make


@pytest.fixture
def logged_client_admin(client, user_admin):
    with client.session_transaction() as sess:
        sess["user"] = {"id": user_admin.id, "email": user_admin.email, "is_admin": True}
    return client


@pytest.fixture
def logged_client_user(client, user_normal):
    with client.session_transaction() as sess:
        sess["user"] = {"id": user_normal.id, "email": user_normal.email, "is_admin": False}
    return client
