import pytest

from cafe import Application, Command, CommandParser, Dispatcher, Role, parse_boolean_input


def run(script, *lines, args=()):
    return Application(*args, path=":memory:", read_line=script(*lines))


def test_customer_places_an_order(script, capsys):
    app = run(script,
              "account register alice", "pw", "",
              "account login alice", "pw",
              "order create", "Latte", "no sugar", "Bagel", "", "q",
              "order history")
    out = capsys.readouterr().out
    assert "account alice created" in out
    assert "logged in as" in out
    assert "order #1 created" in out
    assert "$5.50" in out
    assert "no sugar" in out
    assert app.store.query("orders", {"order_id": 1})[0]["total"] == 5.50


def test_commands_require_login(script, capsys):
    run(script, "order history", "menu")
    out = capsys.readouterr().out
    assert out.count("please login/register first") == 2


def test_failed_login_keeps_session_empty(script, capsys):
    app = run(script, "account login admin", "nope", "order history")
    out = capsys.readouterr().out
    assert "invalid login or password" in out
    assert "please login/register first" in out
    assert app.parser.session is None


def test_customer_is_refused_manager_commands(script, capsys):
    app = run(script,
              "account register alice", "pw", "",
              "account login alice", "pw",
              "admin menu delete Latte",
              "help")
    out = capsys.readouterr().out
    assert "insufficient privileges" in out
    assert "admin menu delete" not in out.split("available commands:")[1]
    assert app.dispatcher.menu.find_by_name("Latte")


def test_manager_promotes_user_through_search(script, capsys):
    app = run(script,
              "account register alice", "pw", "",
              "account login admin", "admin",
              "admin users role ali", "0", "boss", "employee")
    out = capsys.readouterr().out
    assert "unknown role 'boss'" in out
    assert "alice is now Employee" in out
    assert app.dispatcher.identity.get("alice").role is Role.EMPLOYEE


def test_staff_marks_paid_and_updates_status(script, capsys):
    app = run(script,
              "account register alice", "pw", "",
              "account login alice", "pw",
              "order create", "Latte", "", "q",
              "account logout",
              "account login admin", "admin",
              "staff paid 1",
              "staff paid 1",
              "staff status 1", "Latte", "complete", "",
              "staff status 1", "Latte", "not started", "",
              "staff recent")
    out = capsys.readouterr().out
    assert out.count("order #1 is now paid") == 2
    assert "Latte on order #1 is now Complete" in out
    assert "cannot move item from Complete back to NotStarted" in out
    assert app.store.query("item_status")[0]["status"] == "Complete"


def test_profile_update_reprompts_invalid_lengths(script, capsys):
    app = run(script,
              "account register alice", "pw", "",
              "account login alice", "pw",
              "account update", "12345", "+123456789012", "", "x" * 401, "latte")
    out = capsys.readouterr().out
    assert "phone number must be exactly 13 characters" in out
    assert "favorite items must be at most 400 characters" in out
    user = app.dispatcher.identity.get("alice")
    assert (user.phone_number, user.favorite_items) == ("+123456789012", "latte")


def test_menu_browsing(script, capsys):
    run(script,
        "account login admin", "admin",
        "menu",
        "menu find green tea",
        "menu type pastry",
        "menu find soup")
    out = capsys.readouterr().out
    assert "Coffee:" in out
    assert "sencha" in out
    assert "Croissant" in out
    assert "no menu item named 'soup'" in out


def test_initial_arguments_run_as_first_command(script, capsys):
    run(script, args=("help",))
    assert "available commands:" in capsys.readouterr().out


def test_quit_exits(script):
    with pytest.raises(SystemExit):
        run(script, "quit", "y")


def test_command_arity_is_checked(store, script, capsys):
    parser = CommandParser(Dispatcher(store), script())
    calls = []
    parser.commands.append(Command("ping", lambda a, b="x": calls.append((a, b)), "test", requires_login=False))
    parser.parse_and_execute("ping")
    parser.parse_and_execute("ping 1 2 3")
    parser.parse_and_execute("ping 1")
    assert calls == [("1", "x")]
    assert capsys.readouterr().out.count("invalid args for 'ping'") == 2


def test_unknown_command(store, script, capsys):
    CommandParser(Dispatcher(store), script()).parse_and_execute("brew espresso")
    assert "unknown command" in capsys.readouterr().out


def test_adding_a_duplicate_menu_item_is_reported(script, capsys):
    app = run(script,
              "account login admin", "admin",
              "admin menu add latte", "Coffee", "1", "", "")
    out = capsys.readouterr().out
    assert "menu item 'latte' already exists" in out
    assert app.dispatcher.menu.find_by_name("Latte").price == 3.50
    assert len(app.dispatcher.menu.list_all()) == 6


def test_menu_add_takes_a_multi_word_name(script, capsys):
    app = run(script,
              "account login admin", "admin",
              "admin menu add Blueberry Muffin", "Pastry", "abc", "3.00", "wild blueberries", "")
    out = capsys.readouterr().out
    assert "price must be a non-negative number" in out
    assert "Blueberry Muffin added at $3.00" in out
    item = app.dispatcher.menu.find_by_name("blueberry muffin")
    assert (item.type, item.description) == ("Pastry", "wild blueberries")


def test_menu_search_picks_an_item(script, capsys):
    run(script,
        "account login admin", "admin",
        "menu search e",
        "green tea",
        "menu search zzz")
    out = capsys.readouterr().out
    assert "Americano" in out
    assert "Croissant" not in out
    assert "sencha, steeped 3 minutes" in out
    assert "no matches" in out


def test_menu_search_needs_login(script, capsys):
    run(script, "menu search latte")
    assert "please login/register first" in capsys.readouterr().out


def test_menu_delete_falls_back_to_search(script, capsys):
    app = run(script,
              "account login admin", "admin",
              "admin menu delete lat", "Latte",
              "admin menu delete soup")
    out = capsys.readouterr().out
    assert "no exact match for 'lat', did you mean:" in out
    assert "Latte deleted" in out
    assert "no menu item named 'soup'" in out
    assert [m.name for m in app.dispatcher.menu.search("lat")] == []


def test_menu_update_can_be_cancelled_at_selection(script, capsys):
    app = run(script,
              "account login admin", "admin",
              "admin menu update cap", "")
    assert "cancelled" in capsys.readouterr().out
    assert app.dispatcher.menu.find_by_name("Cappuccino").price == 3.25


@pytest.mark.parametrize("answer, expected", [("y", True), (" YES ", True), ("n", False), ("maybe", False), ("", False)])
def test_parse_boolean_input(answer, expected):
    assert parse_boolean_input(answer) is expected
