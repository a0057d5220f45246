import pytest

from cafe import (AuthFailure, DuplicateLogin, IdentityStore, InvalidField, Role,
                  UnknownUser)


@pytest.fixture
def identity(store):
    return IdentityStore(store)


def test_register_always_creates_customer(identity):
    user = identity.register("alice", "secret", "+1-5555550123")
    assert user.role is Role.CUSTOMER
    assert user.phone_number == "+1-5555550123"
    assert user.favorite_items == ""


def test_register_rejects_duplicate_login_case_insensitively(identity):
    identity.register("alice", "secret")
    with pytest.raises(DuplicateLogin):
        identity.register("ALICE", "other")


@pytest.mark.parametrize("login, password, phone", [
    ("", "pw", ""),
    ("a" * 51, "pw", ""),
    ("alice", "", ""),
    ("alice", "p" * 51, ""),
    ("alice", "pw", "555-0123"),
])
def test_register_validates_bounds(identity, login, password, phone):
    with pytest.raises(InvalidField):
        identity.register(login, password, phone)
    assert identity.search("") == []


def test_authenticate_returns_stored_role(identity):
    identity.register("bob", "pw")
    identity.set_role("bob", Role.EMPLOYEE)
    assert identity.authenticate("bob", "pw") is Role.EMPLOYEE


@pytest.mark.parametrize("login, password", [("bob", "PW"), ("bob", "pw "), ("nobody", "pw")])
def test_authenticate_requires_exact_match(identity, login, password):
    identity.register("bob", "pw")
    with pytest.raises(AuthFailure):
        identity.authenticate(login, password)


def test_update_profile_leaves_unspecified_fields(identity):
    identity.register("alice", "pw", "0123456789012")
    user = identity.update_profile("alice", favorite_items="latte, bagel")
    assert user.favorite_items == "latte, bagel"
    assert user.phone_number == "0123456789012"
    assert identity.authenticate("alice", "pw") is Role.CUSTOMER


def test_update_profile_validates_before_writing(identity):
    identity.register("alice", "pw")
    with pytest.raises(InvalidField):
        identity.update_profile("alice", password="new", favorite_items="x" * 401)
    assert identity.authenticate("alice", "pw") is Role.CUSTOMER


def test_unknown_user(identity):
    with pytest.raises(UnknownUser):
        identity.get("ghost")
    with pytest.raises(UnknownUser):
        identity.set_role("ghost", Role.MANAGER)


def test_search_is_substring_match(identity):
    for login in ("alice", "malik", "bob"):
        identity.register(login, "pw")
    assert [u.login for u in identity.search("LI")] == ["alice", "malik"]


@pytest.mark.parametrize("text, role", [
    ("Customer", Role.CUSTOMER), ("employee", Role.EMPLOYEE), ("Manager ", Role.MANAGER), (" MANAGER", Role.MANAGER),
])
def test_role_parse_tolerates_case_and_spaces(text, role):
    assert Role.parse(text) is role


def test_role_parse_rejects_unknown():
    with pytest.raises(InvalidField):
        Role.parse("owner")
