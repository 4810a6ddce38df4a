"""
Shared pytest fixtures for the portfolio tracker test suite.
The remote store is always a fake behind httpx.MockTransport – no network.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)

# Never point tests at a real store
os.environ["STORE_TRANSPORT"] = "table"
os.environ["STORE_BASE_URL"]  = "http://store.test/"


import pytest

from factories import make_services, make_rpc_services
from fake_store import FakeRpcStore, FakeTableStore


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def table_store():
    return FakeTableStore()


@pytest.fixture
def rpc_store():
    return FakeRpcStore()


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "local.db"


@pytest.fixture
def table_services(table_store, db_path):
    return make_services(table_store, db_path)


@pytest.fixture
def rpc_services(rpc_store, db_path):
    return make_rpc_services(rpc_store, db_path)
