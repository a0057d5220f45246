import os

import pytest

from cafe import Dispatcher, Role, Store

# plain text output so assertions can match whole phrases
os.environ["NO_COLOR"] = "1"
os.environ["ANSI_COLORS_DISABLED"] = "1"
os.environ.pop("FORCE_COLOR", None)


@pytest.fixture
def store():
    s = Store(":memory:")
    yield s
    s.close()


@pytest.fixture
def dispatcher(store):
    d = Dispatcher(store, enforce_monotonic=True)
    for name, type, price in [("Latte", "Coffee", 3.50), ("Bagel", "Pastry", 2.00),
                              ("Green Tea", "Tea", 2.25), ("Muffin", "Pastry", 2.75)]:
        store.insert("menu", {"item_name": name, "type": type, "price": price, "description": ""})
    d.register("alice", "pw")
    d.register("carol", "pw")
    d.register("bob", "pw")
    d.identity.set_role("bob", Role.EMPLOYEE)
    d.register("boss", "pw")
    d.identity.set_role("boss", Role.MANAGER)
    return d


@pytest.fixture
def alice(dispatcher):
    return dispatcher.login("alice", "pw")


@pytest.fixture
def carol(dispatcher):
    return dispatcher.login("carol", "pw")


@pytest.fixture
def employee(dispatcher):
    return dispatcher.login("bob", "pw")


@pytest.fixture
def manager(dispatcher):
    return dispatcher.login("boss", "pw")


def scripted(*lines):
    """read_line stand-in that replays lines then signals end of input"""
    it = iter(lines)

    def read_line(prompt=""):
        try:
            return next(it)
        except StopIteration:
            raise EOFError from None
    return read_line


@pytest.fixture
def script():
    return scripted
