#!/usr/bin/env python3.13
#                __
#   ___ __ _ / _| ___
#  / __/ _` | |_ / _ \
# | (_| (_| |  _|  __/
#  \___\__,_|_|  \___|  ☕ orders, items & who gets to touch them
#
# --sql is used for syntax highlighting inline sql queries

import atexit
import inspect
import logging
import os
import signal
import sqlite3
import sys
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Iterable, Iterator, Sequence

from termcolor import cprint, colored
from colorama import just_fix_windows_console as enable_windows_ansi_interpretation

log = logging.getLogger("cafe")

# constants
DB_PATH = os.getenv("CAFE_DB", "cafe.db")
LOG_LEVEL = os.getenv("CAFE_LOG_LEVEL", "WARNING")
ENFORCE_MONOTONIC = os.getenv("CAFE_ENFORCE_MONOTONIC", "1") != "0"
PHONE_LENGTH = 13
MAX_LOGIN_LENGTH = 50
MAX_PASSWORD_LENGTH = 50
MAX_FAVORITE_ITEMS_LENGTH = 400
RECENT_ORDERS_WINDOW = timedelta(hours=24)
ORDER_HISTORY_LIMIT = 5
QUIT_SENTINEL = "q"

ReadLine = Callable[[str], str]

# helpers
def utc_now() -> datetime:
    """current time in utc"""
    return datetime.now(timezone.utc)

def to_timestamp(moment: datetime) -> str:
    """fixed-width iso string so timestamps sort lexically"""
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")

def safe_int(value: str, minimum: int | None = None):
    """return int value or none if invalid / below minimum"""
    try:
        v = int(value)
        if minimum is not None and v < minimum:
            return None
        return v
    except ValueError:
        return None

def safe_price(value: str):
    """return non-negative price or none"""
    try:
        p = round(float(value), 2)
    except ValueError:
        return None
    return p if p >= 0 else None

def color_money(amount: float) -> str:
    """format amount as green money string"""
    return colored(f"${amount:.2f}", "green")

def parse_boolean_input(prompt: str) -> bool:
    """parse y/n style input; anything else is no"""
    return prompt.lower().strip() in ("y", "yes")

def is_quit_sentinel(text: str) -> bool:
    """true for the 'q' that ends a selection loop"""
    return text.strip().lower() == QUIT_SENTINEL

# errors
class CafeError(Exception):
    """base for every error reported back to the session"""

class AuthFailure(CafeError):
    def __init__(self):
        super().__init__("invalid login or password")

class DuplicateLogin(CafeError):
    def __init__(self, login: str):
        super().__init__(f"login '{login}' already taken")
        self.login = login

class DuplicateItem(CafeError):
    def __init__(self, name: str):
        super().__init__(f"menu item '{name}' already exists")
        self.name = name

class NotFound(CafeError):
    """lookup of a keyed record came back empty"""

class UnknownItem(NotFound):
    def __init__(self, name: str):
        super().__init__(f"no menu item named '{name}'")
        self.name = name

class UnknownOrder(NotFound):
    def __init__(self, order_id: int):
        super().__init__(f"order #{order_id} not found")
        self.order_id = order_id

class UnknownOrderItem(NotFound):
    def __init__(self, order_id: int, item_name: str):
        super().__init__(f"order #{order_id} has no item '{item_name}'")
        self.order_id = order_id
        self.item_name = item_name

class UnknownUser(NotFound):
    def __init__(self, login: str):
        super().__init__(f"no user with login '{login}'")
        self.login = login

class InvalidTransition(CafeError):
    def __init__(self, current: "ItemState", requested: "ItemState"):
        super().__init__(f"cannot move item from {current.value} back to {requested.value}")
        self.current = current
        self.requested = requested

class Unauthorized(CafeError):
    def __init__(self, message: str = "insufficient privileges"):
        super().__init__(message)

class InvalidField(CafeError):
    """a user supplied value is outside its allowed bounds"""

class OrderAlreadyPaid(CafeError):
    def __init__(self, order_id: int):
        super().__init__(f"order #{order_id} is already paid and cannot be amended")
        self.order_id = order_id

class StoreFailure(CafeError):
    """wraps any error raised by the backing store"""

class StoreConflict(StoreFailure):
    """a write broke a key, check or foreign key constraint"""

# domain models
class Role(Enum):
    """permission tier; see PERMISSIONS for what each may do"""
    CUSTOMER = "Customer"
    EMPLOYEE = "Employee"
    MANAGER = "Manager"

    @classmethod
    def parse(cls, text: str) -> "Role":
        """tolerant of case and stray whitespace"""
        wanted = text.strip().lower()
        for role in cls:
            if role.value.lower() == wanted or role.name.lower() == wanted:
                return role
        raise InvalidField(f"unknown role '{text.strip()}' (expected one of: {', '.join(r.value for r in cls)})")

class ItemState(Enum):
    """preparation status of one item within an order"""
    NOT_STARTED = "NotStarted"
    IN_PROGRESS = "InProgress"
    COMPLETE = "Complete"

    @property
    def rank(self) -> int:
        """position in the lifecycle; higher is later"""
        return list(ItemState).index(self)

    @classmethod
    def parse(cls, text: str) -> "ItemState":
        """lenient status parsing, e.g. 'in progress' or 'inprogress'"""
        wanted = text.strip().lower().replace(" ", "").replace("_", "").replace("-", "")
        for state in cls:
            if state.value.lower() == wanted:
                return state
        raise InvalidField(f"unknown status '{text.strip()}' (expected one of: {', '.join(s.value for s in cls)})")

@dataclass(frozen=True)
class Session:
    """who is driving the current sequence of operations"""
    login: str
    role: Role

@dataclass
class User:
    login: str
    password: str
    phone_number: str
    favorite_items: str
    role: Role

    HEADERS = ("login", "phone", "favorite items", "role")

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "User":
        """build from a users row"""
        return cls(row["login"], row["password"], row["phone_number"] or "",
                   row["favorite_items"], Role(row["role"]))

    def as_row(self) -> tuple:
        """display row, password left out"""
        return (self.login, self.phone_number or "-", self.favorite_items or "-", self.role.value)

@dataclass
class MenuItem:
    name: str
    type: str
    price: float
    description: str = ""
    image_ref: str = ""

    HEADERS = ("item", "type", "price", "description")

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "MenuItem":
        """build from a menu row"""
        return cls(row["item_name"], row["type"], row["price"], row["description"], row["image_ref"])

    def as_row(self) -> tuple:
        """display row"""
        return (self.name, self.type, f"${self.price:.2f}", self.description)

@dataclass
class Order:
    order_id: int
    login: str
    paid: bool
    received_at: datetime
    total: float

    HEADERS = ("order", "customer", "received", "total", "paid")

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Order":
        """build from an orders row"""
        return cls(row["order_id"], row["login"], bool(row["paid"]),
                   datetime.fromisoformat(row["received_at"]), row["total"])

    def as_row(self) -> tuple:
        """display row"""
        return (f"#{self.order_id}", self.login, self.received_at.strftime("%Y-%m-%d %H:%M"),
                f"${self.total:.2f}", "yes" if self.paid else "no")

@dataclass
class ItemStatus:
    order_id: int
    item_name: str
    status: ItemState
    last_updated: datetime
    comments: str
    price: float

    HEADERS = ("item", "status", "updated", "price", "comments")

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "ItemStatus":
        """build from an item_status row"""
        return cls(row["order_id"], row["item_name"], ItemState(row["status"]),
                   datetime.fromisoformat(row["last_updated"]), row["comments"], row["price"])

    def as_row(self) -> tuple:
        """display row"""
        return (self.item_name, self.status.value, self.last_updated.strftime("%Y-%m-%d %H:%M"),
                f"${self.price:.2f}", self.comments or "-")

# database layer
class Store:
    """sqlite-backed record store; every value is bound, never interpolated"""
    COLUMNS: dict[str, tuple[str, ...]] = {
        "users": ("login", "password", "phone_number", "favorite_items", "role"),
        "menu": ("item_name", "type", "price", "description", "image_ref"),
        "orders": ("order_id", "login", "paid", "received_at", "total"),
        "item_status": ("order_id", "item_name", "status", "last_updated", "comments", "price"),
    }
    OPERATORS = ("=", "!=", "<", "<=", ">", ">=")

    def __init__(self, path: str = DB_PATH, timeout: float = 5.0):
        """open (or create) the database and its schema; seed_defaults is separate"""
        try:
            self.conn = sqlite3.connect(path, timeout=timeout, isolation_level=None, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("--sql\nPRAGMA foreign_keys=ON;")
        except sqlite3.Error as e:
            raise StoreFailure(f"cannot open database '{path}': {e}") from e
        self.path = path
        self._lock = threading.RLock()
        self._depth = 0
        self._create_schema()

    def _create_schema(self):
        """create tables / triggers if missing"""
        script = """--sql
            CREATE TABLE IF NOT EXISTS users (
                login TEXT PRIMARY KEY COLLATE NOCASE,
                password TEXT NOT NULL,
                phone_number TEXT CHECK (phone_number IS NULL OR length(phone_number) = 13),
                favorite_items TEXT NOT NULL DEFAULT '' CHECK (length(favorite_items) <= 400),
                role TEXT NOT NULL DEFAULT 'Customer' CHECK (role IN ('Customer', 'Employee', 'Manager'))
            );
            CREATE TABLE IF NOT EXISTS menu (
                item_name TEXT PRIMARY KEY COLLATE NOCASE,
                type TEXT NOT NULL COLLATE NOCASE,
                price REAL NOT NULL,
                description TEXT NOT NULL DEFAULT '',
                image_ref TEXT NOT NULL DEFAULT ''
            );
            CREATE TABLE IF NOT EXISTS orders (
                order_id INTEGER PRIMARY KEY AUTOINCREMENT,
                login TEXT NOT NULL COLLATE NOCASE,
                paid INTEGER NOT NULL DEFAULT 0,
                received_at TEXT NOT NULL,
                total REAL NOT NULL DEFAULT 0,
                FOREIGN KEY(login) REFERENCES users(login)
            );
            CREATE TABLE IF NOT EXISTS item_status (
                order_id INTEGER NOT NULL,
                item_name TEXT NOT NULL COLLATE NOCASE,
                status TEXT NOT NULL DEFAULT 'NotStarted' CHECK (status IN ('NotStarted', 'InProgress', 'Complete')),
                last_updated TEXT NOT NULL,
                comments TEXT NOT NULL DEFAULT '',
                price REAL NOT NULL,
                PRIMARY KEY (order_id, item_name),
                FOREIGN KEY(order_id) REFERENCES orders(order_id)
            );
            CREATE INDEX IF NOT EXISTS idx_orders_login ON orders(login);
            CREATE INDEX IF NOT EXISTS idx_orders_received ON orders(received_at);
            CREATE TRIGGER IF NOT EXISTS trg_menu_price_insert
            BEFORE INSERT ON menu
            WHEN NEW.price < 0
            BEGIN
                SELECT RAISE(ABORT, 'price must not be negative');
            END;
            CREATE TRIGGER IF NOT EXISTS trg_menu_price_update
            BEFORE UPDATE ON menu
            WHEN NEW.price < 0
            BEGIN
                SELECT RAISE(ABORT, 'price must not be negative');
            END;
            """
        with self._lock:
            try:
                self.conn.executescript(script)
            except sqlite3.Error as e:
                raise StoreFailure(f"cannot create schema: {e}") from e

    def seed_defaults(self):
        """seed a starter menu and the admin account once"""
        menu = [
            ("Latte", "Coffee", 3.50, "espresso with steamed milk"),
            ("Americano", "Coffee", 2.75, "espresso topped with hot water"),
            ("Cappuccino", "Coffee", 3.25, "espresso, milk and foam"),
            ("Green Tea", "Tea", 2.25, "sencha, steeped 3 minutes"),
            ("Bagel", "Pastry", 2.00, "plain, toasted on request"),
            ("Croissant", "Pastry", 2.50, "butter croissant"),
        ]
        with self.transaction():
            self._execute(
                "INSERT OR IGNORE INTO menu(item_name, type, price, description) VALUES(?,?,?,?);",
                many=menu
            )
            self._execute(
                "INSERT OR IGNORE INTO users(login, password, role) VALUES(?,?,?);",
                ("admin", "admin", Role.MANAGER.value)
            )

    def close(self):
        """close the connection"""
        with self._lock:
            self.conn.close()

    # low level
    def _execute(self, sql: str, params: Sequence = (), many: Iterable[Sequence] | None = None,
                 fetch: bool = False):
        """run one statement under the connection lock; fetch=True returns its rows"""
        with self._lock:
            try:
                if many is not None:
                    return self.conn.executemany(sql, many)
                cur = self.conn.execute(sql, params)
                return cur.fetchall() if fetch else cur
            except sqlite3.IntegrityError as e:
                raise StoreConflict(str(e)) from e
            except sqlite3.Error as e:
                log.error("store failure on %r: %s", " ".join(sql.split())[:80], e)
                raise StoreFailure(str(e)) from e

    @contextmanager
    def transaction(self) -> Iterator["Store"]:
        """one atomic unit; nested scopes join the outermost one"""
        with self._lock:
            outer = self._depth == 0
            if outer:
                self._execute("BEGIN IMMEDIATE;")
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outer:
                    try:
                        self._execute("ROLLBACK;")
                    except StoreFailure as rollback_error:
                        # sqlite may already have rolled back on its own
                        log.error("rollback failed: %s", rollback_error)
                raise
            self._depth -= 1
            if outer:
                self._execute("COMMIT;")

    def _check(self, table: str, columns: Iterable[str]) -> None:
        """raise unless table and columns are in the schema"""
        known = self.COLUMNS.get(table)
        if known is None:
            raise StoreFailure(f"unknown table '{table}'")
        for column in columns:
            if column not in known:
                raise StoreFailure(f"unknown column '{column}' on '{table}'")

    def _where(self, table: str, where: dict | None) -> tuple[str, list]:
        """{'col': v, 'col >=': v} -> ('WHERE col=? AND col>=?', [v, v])"""
        if not where:
            return "", []
        clauses, params = [], []
        for key, value in where.items():
            column, _, op = key.strip().partition(" ")
            op = op.strip() or "="
            if op not in self.OPERATORS:
                raise StoreFailure(f"unsupported operator '{op}'")
            self._check(table, [column])
            clauses.append(f"{column} {op} ?")
            params.append(value)
        return "WHERE " + " AND ".join(clauses), params

    # record crud
    def insert(self, table: str, record: dict) -> int:
        """insert one record and return its generated key (rowid)"""
        self._check(table, record)
        columns = ", ".join(record)
        marks = ", ".join("?" * len(record))
        return self._execute(f"INSERT INTO {table}({columns}) VALUES({marks});", tuple(record.values())).lastrowid

    def update(self, table: str, where: dict, fields: dict) -> int:
        """update matching records; returns affected row count"""
        if not where:
            raise StoreFailure("refusing to update without a predicate")
        if not fields:
            return 0
        self._check(table, fields)
        clause, params = self._where(table, where)
        assignments = ", ".join(f"{c}=?" for c in fields)
        cur = self._execute(f"UPDATE {table} SET {assignments} {clause};", [*fields.values(), *params])
        return cur.rowcount

    def query(self, table: str, where: dict | None = None, order_by: str | None = None,
              limit: int | None = None) -> list[sqlite3.Row]:
        """select whole records matching every predicate"""
        self._check(table, [])
        clause, params = self._where(table, where)
        sql = f"SELECT * FROM {table} {clause}"
        if order_by:
            column, _, direction = order_by.partition(" ")
            self._check(table, [column])
            direction = direction.strip().upper()
            if direction not in ("", "ASC", "DESC"):
                raise StoreFailure(f"bad sort direction '{direction}'")
            sql += f" ORDER BY {column} {direction}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)
        return self._execute(sql + ";", params, fetch=True)

    def delete(self, table: str, where: dict) -> int:
        """delete matching records; returns affected row count"""
        if not where:
            raise StoreFailure("refusing to delete without a predicate")
        clause, params = self._where(table, where)
        return self._execute(f"DELETE FROM {table} {clause};", params).rowcount

# accounts/auth
def validate_login(login: str) -> str:
    """strip and bound a login"""
    login = login.strip()
    if not (1 <= len(login) <= MAX_LOGIN_LENGTH):
        raise InvalidField(f"login must be 1-{MAX_LOGIN_LENGTH} characters")
    return login

def validate_password(password: str) -> str:
    """bound a password; content is not checked"""
    if not (1 <= len(password) <= MAX_PASSWORD_LENGTH):
        raise InvalidField(f"password must be 1-{MAX_PASSWORD_LENGTH} characters")
    return password

def validate_phone(phone: str) -> str:
    """empty means no phone number; anything else must be exactly 13 chars"""
    phone = phone.strip()
    if phone and len(phone) != PHONE_LENGTH:
        raise InvalidField(f"phone number must be exactly {PHONE_LENGTH} characters")
    return phone

def validate_favorite_items(favorites: str) -> str:
    """bound the free-text favorites"""
    if len(favorites) > MAX_FAVORITE_ITEMS_LENGTH:
        raise InvalidField(f"favorite items must be at most {MAX_FAVORITE_ITEMS_LENGTH} characters")
    return favorites

class IdentityStore:
    """user records, credential checks and role assignment"""
    def __init__(self, store: Store):
        self.store = store

    def authenticate(self, login: str, password: str) -> Role:
        """role for a matching login/password pair"""
        rows = self.store.query("users", {"login": login.strip()}, limit=1)
        if not rows or rows[0]["password"] != password:
            log.warning("failed login for %r", login)
            raise AuthFailure()
        return Role(rows[0]["role"])

    def register(self, login: str, password: str, phone: str = "") -> User:
        """self-registration; always creates a customer"""
        login = validate_login(login)
        password = validate_password(password)
        phone = validate_phone(phone)
        with self.store.transaction():
            if self.store.query("users", {"login": login}, limit=1):
                raise DuplicateLogin(login)
            try:
                self.store.insert("users", {
                    "login": login,
                    "password": password,
                    "phone_number": phone or None,
                    "favorite_items": "",
                    "role": Role.CUSTOMER.value,
                })
            except StoreConflict as e:
                raise DuplicateLogin(login) from e
        log.info("registered %s", login)
        return self.get(login)

    def get(self, login: str) -> User:
        """user record by login (case-insensitive)"""
        rows = self.store.query("users", {"login": login.strip()}, limit=1)
        if not rows:
            raise UnknownUser(login)
        return User.from_row(rows[0])

    def update_profile(self, login: str, phone_number: str | None = None, password: str | None = None,
                       favorite_items: str | None = None) -> User:
        """none leaves a field unchanged"""
        fields = {}
        if phone_number is not None:
            fields["phone_number"] = validate_phone(phone_number) or None
        if password is not None:
            fields["password"] = validate_password(password)
        if favorite_items is not None:
            fields["favorite_items"] = validate_favorite_items(favorite_items)
        with self.store.transaction():
            user = self.get(login)
            self.store.update("users", {"login": user.login}, fields)
        return self.get(login)

    def set_role(self, login: str, role: Role) -> User:
        """assign a new role"""
        with self.store.transaction():
            user = self.get(login)
            self.store.update("users", {"login": user.login}, {"role": role.value})
        log.info("%s is now %s", login, role.value)
        return self.get(login)

    def search(self, query: str) -> list[User]:
        """users whose login contains query"""
        q = query.strip().lower()
        return [User.from_row(r) for r in self.store.query("users", order_by="login")
                if q in r["login"].lower()]

# menu catalog
class MenuCatalog:
    """purchasable items with price and metadata"""
    EDITABLE = ("type", "price", "description", "image_ref")

    def __init__(self, store: Store):
        self.store = store

    def find_by_name(self, name: str) -> MenuItem:
        """exact, case-insensitive lookup"""
        rows = self.store.query("menu", {"item_name": name.strip()}, limit=1)
        if not rows:
            raise UnknownItem(name.strip())
        return MenuItem.from_row(rows[0])

    def find_by_type(self, type: str) -> list[MenuItem]:
        """items of one type, by name"""
        return [MenuItem.from_row(r) for r in self.store.query("menu", {"type": type.strip()}, order_by="item_name")]

    def list_all(self) -> list[MenuItem]:
        """whole menu, grouped by type"""
        return [MenuItem.from_row(r) for r in self.store.query("menu", order_by="type")]

    def search(self, query: str) -> list[MenuItem]:
        """items whose name contains query"""
        q = query.strip().lower()
        return [m for m in self.list_all() if q in m.name.lower()]

    def create(self, item: MenuItem) -> MenuItem:
        """add a new item; names are unique ignoring case"""
        name = item.name.strip()
        if not name:
            raise InvalidField("menu item name must not be empty")
        if item.price < 0:
            raise InvalidField("price must not be negative")
        with self.store.transaction():
            if self.store.query("menu", {"item_name": name}, limit=1):
                raise DuplicateItem(name)
            try:
                self.store.insert("menu", {
                    "item_name": name,
                    "type": item.type.strip(),
                    "price": round(item.price, 2),
                    "description": item.description,
                    "image_ref": item.image_ref,
                })
            except StoreConflict as e:
                raise DuplicateItem(name) from e
        return self.find_by_name(name)

    def update(self, name: str, **fields) -> MenuItem:
        """update any of type / price / description / image_ref"""
        unknown = set(fields) - set(self.EDITABLE)
        if unknown:
            raise InvalidField(f"cannot edit {', '.join(sorted(unknown))} on a menu item")
        if "price" in fields:
            if fields["price"] < 0:
                raise InvalidField("price must not be negative")
            fields["price"] = round(fields["price"], 2)
        with self.store.transaction():
            item = self.find_by_name(name)
            self.store.update("menu", {"item_name": item.name}, fields)
        return self.find_by_name(name)

    def delete(self, name: str) -> None:
        """remove from the menu; order history keeps its rows"""
        with self.store.transaction():
            if not self.store.delete("menu", {"item_name": name.strip()}):
                raise UnknownItem(name.strip())

# order ledger
class OrderLedger:
    """order records, payment flag and history queries"""
    def __init__(self, store: Store):
        self.store = store

    def get(self, order_id: int) -> Order:
        """order record by id"""
        rows = self.store.query("orders", {"order_id": order_id}, limit=1)
        if not rows:
            raise UnknownOrder(order_id)
        return Order.from_row(rows[0])

    def update_paid_flag(self, order_id: int) -> Order:
        """mark paid; paying twice is a no-op"""
        with self.store.transaction():
            order = self.get(order_id)
            if not order.paid:
                self.store.update("orders", {"order_id": order_id}, {"paid": 1})
                log.debug("order #%d paid", order_id)
        return self.get(order_id)

    def history(self, login: str, limit: int | None = ORDER_HISTORY_LIMIT) -> list[Order]:
        """newest first"""
        rows = self.store.query("orders", {"login": login}, order_by="order_id DESC", limit=limit)
        return [Order.from_row(r) for r in rows]

    def recent(self, window: timedelta = RECENT_ORDERS_WINDOW, now: datetime | None = None) -> list[Order]:
        """orders received inside the window ending at now"""
        cutoff = to_timestamp((now or utc_now()) - window)
        rows = self.store.query("orders", {"received_at >=": cutoff}, order_by="order_id DESC")
        return [Order.from_row(r) for r in rows]

    def search(self, query: str, login: str | None = None) -> list[Order]:
        """orders matching an id or login fragment"""
        q = query.strip().lstrip("#").lower()
        where = {"login": login} if login is not None else None
        rows = self.store.query("orders", where, order_by="order_id")
        return [Order.from_row(r) for r in rows
                if q in str(r["order_id"]) or q in r["login"].lower()]

# item status tracker
class ItemStatusTracker:
    """per-item state machine: NotStarted -> InProgress -> Complete"""
    def __init__(self, store: Store, enforce_monotonic: bool = ENFORCE_MONOTONIC):
        self.store = store
        self.enforce_monotonic = enforce_monotonic

    def get(self, order_id: int, item_name: str) -> ItemStatus:
        """status row for one item of an order"""
        rows = self.store.query("item_status", {"order_id": order_id, "item_name": item_name.strip()}, limit=1)
        if not rows:
            raise UnknownOrderItem(order_id, item_name.strip())
        return ItemStatus.from_row(rows[0])

    def items_for_order(self, order_id: int) -> list[ItemStatus]:
        """every status row of an order"""
        return [ItemStatus.from_row(r) for r in self.store.query("item_status", {"order_id": order_id})]

    def update_status(self, order_id: int, item_name: str, new_status: ItemState,
                      comments: str | None = None) -> ItemStatus:
        """move an item forward; backwards only when monotonic checks are off"""
        with self.store.transaction():
            current = self.get(order_id, item_name)
            if self.enforce_monotonic and new_status.rank < current.status.rank:
                log.warning("rejected %s -> %s on order #%d/%s",
                            current.status.value, new_status.value, order_id, current.item_name)
                raise InvalidTransition(current.status, new_status)
            fields = {"status": new_status.value, "last_updated": to_timestamp(utc_now())}
            if comments is not None:
                fields["comments"] = comments
            self.store.update("item_status", {"order_id": order_id, "item_name": current.item_name}, fields)
        return self.get(order_id, item_name)

    def update_comments(self, order_id: int, item_name: str, comments: str) -> ItemStatus:
        """replace the comments on one item"""
        with self.store.transaction():
            current = self.get(order_id, item_name)
            self.store.update("item_status", {"order_id": order_id, "item_name": current.item_name},
                              {"comments": comments, "last_updated": to_timestamp(utc_now())})
        return self.get(order_id, item_name)

# order builder
class OrderBuilder:
    """assemble orders from menu selections, keeping the total in sync"""
    def __init__(self, store: Store, menu: MenuCatalog, ledger: OrderLedger, tracker: ItemStatusTracker):
        self.store = store
        self.menu = menu
        self.ledger = ledger
        self.tracker = tracker

    def begin_order(self, login: str) -> Order:
        """order id comes from the store's autoincrement, never max()+1"""
        with self.store.transaction():
            oid = self.store.insert("orders", {
                "login": login,
                "paid": 0,
                "received_at": to_timestamp(utc_now()),
                "total": 0.0,
            })
            order = self.ledger.get(oid)
        log.debug("order #%d started for %s", oid, login)
        return order

    def add_item(self, order_id: int, item_name: str, comments: str = "") -> ItemStatus:
        """charge an item to an order once; re-adding returns the first row"""
        item = self.menu.find_by_name(item_name)
        with self.store.transaction():
            order = self.ledger.get(order_id)
            existing = self.store.query("item_status", {"order_id": order_id, "item_name": item.name}, limit=1)
            if existing:
                # already charged
                return ItemStatus.from_row(existing[0])
            self.store.insert("item_status", {
                "order_id": order_id,
                "item_name": item.name,
                "status": ItemState.NOT_STARTED.value,
                "last_updated": to_timestamp(utc_now()),
                "comments": comments,
                "price": item.price,
            })
            self.store.update("orders", {"order_id": order_id}, {"total": round(order.total + item.price, 2)})
        log.debug("added %s to order #%d", item.name, order_id)
        return self.tracker.get(order_id, item.name)

    def finalize_order(self, order_id: int) -> Order:
        """re-derive total from the item rows; safe to re-run"""
        with self.store.transaction():
            order = self.ledger.get(order_id)
            total = round(sum(i.price for i in self.tracker.items_for_order(order_id)), 2)
            if total != order.total:
                log.warning("order #%d total drifted (%.2f stored, %.2f derived)", order_id, order.total, total)
                self.store.update("orders", {"order_id": order_id}, {"total": total})
        return self.ledger.get(order_id)

    def run_selection_loop(self, order_id: int, read_line: ReadLine,
                           on_error: Callable[[CafeError], None] | None = None) -> Order:
        """prompt for items until 'q' or end of input, then finalize"""
        while True:
            try:
                name = read_line("item name (q to finish): ")
            except EOFError:
                break
            if is_quit_sentinel(name):
                break
            if not name.strip():
                continue
            try:
                comments = read_line("comments: ").strip()
            except EOFError:
                comments = ""
            try:
                self.add_item(order_id, name, comments)
            except CafeError as e:
                if on_error is None:
                    raise
                on_error(e)
        return self.finalize_order(order_id)

# role-scoped dispatch
class Operation(Enum):
    BROWSE_MENU = "browse menu"
    PLACE_ORDER = "place order"
    AMEND_OWN_ORDER = "amend own order"
    VIEW_OWN_ORDERS = "view own orders"
    EDIT_OWN_PROFILE = "view/edit own profile"
    UPDATE_PAID_FLAG = "update paid flag"
    UPDATE_ITEM_STATUS = "update item status"
    VIEW_ALL_ORDERS = "view all orders"
    MANAGE_MENU = "manage menu"
    MANAGE_USERS = "manage users"

_CUSTOMER_OPS = frozenset({
    Operation.BROWSE_MENU, Operation.PLACE_ORDER, Operation.AMEND_OWN_ORDER,
    Operation.VIEW_OWN_ORDERS, Operation.EDIT_OWN_PROFILE,
})
_EMPLOYEE_OPS = _CUSTOMER_OPS | {Operation.UPDATE_PAID_FLAG, Operation.UPDATE_ITEM_STATUS, Operation.VIEW_ALL_ORDERS}
_MANAGER_OPS = _EMPLOYEE_OPS | {Operation.MANAGE_MENU, Operation.MANAGE_USERS}

PERMISSIONS: dict[Role, frozenset[Operation]] = {
    Role.CUSTOMER: _CUSTOMER_OPS,
    Role.EMPLOYEE: _EMPLOYEE_OPS,
    Role.MANAGER: _MANAGER_OPS,
}

class SearchTarget(Enum):
    USER = "user"
    MENU_ITEM = "item"
    ORDER = "order"

class Dispatcher:
    """single entry point: every call carries the session it acts for"""
    def __init__(self, store: Store, enforce_monotonic: bool = ENFORCE_MONOTONIC):
        self.store = store
        self.identity = IdentityStore(store)
        self.menu = MenuCatalog(store)
        self.ledger = OrderLedger(store)
        self.tracker = ItemStatusTracker(store, enforce_monotonic)
        self.builder = OrderBuilder(store, self.menu, self.ledger, self.tracker)

    # guards
    @staticmethod
    def permitted(session: Session) -> frozenset[Operation]:
        """operations granted to the session's role"""
        return PERMISSIONS[session.role]

    def permits(self, session: Session | None, operation: Operation) -> bool:
        """whether a session may run an operation"""
        return session is not None and operation in self.permitted(session)

    def _require(self, session: Session, operation: Operation) -> None:
        """raise Unauthorized unless permitted"""
        if not self.permits(session, operation):
            log.warning("%s (%s) denied %s", session.login, session.role.value, operation.value)
            raise Unauthorized(f"{session.role.value.lower()}s may not {operation.value}")

    def _visible_order(self, session: Session, order_id: int) -> Order:
        """own orders for customers, any order for staff"""
        order = self.ledger.get(order_id)
        if order.login.lower() != session.login.lower() and not self.permits(session, Operation.VIEW_ALL_ORDERS):
            raise Unauthorized(f"order #{order_id} belongs to another user")
        return order

    def _amendable_order(self, session: Session, order_id: int) -> Order:
        """visible, unpaid order the session may change"""
        self._require(session, Operation.AMEND_OWN_ORDER)
        order = self._visible_order(session, order_id)
        if order.paid:
            raise OrderAlreadyPaid(order_id)
        return order

    # identity
    def login(self, login: str, password: str) -> Session:
        """authenticate and open a session"""
        role = self.identity.authenticate(login, password)
        return Session(self.identity.get(login).login, role)

    def register(self, login: str, password: str, phone: str = "") -> User:
        """self-registration"""
        return self.identity.register(login, password, phone)

    def view_profile(self, session: Session, login: str | None = None) -> User:
        """own profile, or anyone's for managers"""
        if login is None or login.lower() == session.login.lower():
            self._require(session, Operation.EDIT_OWN_PROFILE)
            return self.identity.get(session.login)
        self._require(session, Operation.MANAGE_USERS)
        return self.identity.get(login)

    def update_profile(self, session: Session, login: str | None = None, **fields) -> User:
        """edit own profile, or anyone's for managers"""
        target = self.view_profile(session, login)
        return self.identity.update_profile(target.login, **fields)

    def set_user_role(self, session: Session, target_login: str, new_role: Role) -> User:
        """managers only"""
        self._require(session, Operation.MANAGE_USERS)
        return self.identity.set_role(target_login, new_role)

    # menu
    def find_menu_item(self, session: Session, name: str) -> MenuItem:
        """lookup by exact name"""
        self._require(session, Operation.BROWSE_MENU)
        return self.menu.find_by_name(name)

    def browse_by_type(self, session: Session, type: str) -> list[MenuItem]:
        """list one item type"""
        self._require(session, Operation.BROWSE_MENU)
        return self.menu.find_by_type(type)

    def list_menu(self, session: Session) -> list[MenuItem]:
        """full menu"""
        self._require(session, Operation.BROWSE_MENU)
        return self.menu.list_all()

    def create_menu_item(self, session: Session, item: MenuItem) -> MenuItem:
        """managers only"""
        self._require(session, Operation.MANAGE_MENU)
        return self.menu.create(item)

    def update_menu_item(self, session: Session, name: str, **fields) -> MenuItem:
        """managers only"""
        self._require(session, Operation.MANAGE_MENU)
        return self.menu.update(name, **fields)

    def delete_menu_item(self, session: Session, name: str) -> None:
        """managers only"""
        self._require(session, Operation.MANAGE_MENU)
        self.menu.delete(name)

    # orders
    def begin_order(self, session: Session) -> Order:
        """open a new order for the session's user"""
        self._require(session, Operation.PLACE_ORDER)
        return self.builder.begin_order(session.login)

    def add_item(self, session: Session, order_id: int, item_name: str, comments: str = "") -> ItemStatus:
        """add one item to an amendable order"""
        self._amendable_order(session, order_id)
        return self.builder.add_item(order_id, item_name, comments)

    def run_selection_loop(self, session: Session, order_id: int, read_line: ReadLine,
                           on_error: Callable[[CafeError], None] | None = None) -> Order:
        """interactive item entry on an amendable order"""
        self._amendable_order(session, order_id)
        return self.builder.run_selection_loop(order_id, read_line, on_error)

    def finalize_order(self, session: Session, order_id: int) -> Order:
        """reconcile the total of a visible order"""
        self._require(session, Operation.PLACE_ORDER)
        self._visible_order(session, order_id)
        return self.builder.finalize_order(order_id)

    def update_comments(self, session: Session, order_id: int, item_name: str, comments: str) -> ItemStatus:
        """change comments on an amendable order"""
        self._amendable_order(session, order_id)
        return self.tracker.update_comments(order_id, item_name, comments)

    def update_status(self, session: Session, order_id: int, item_name: str, new_status: ItemState,
                      comments: str | None = None) -> ItemStatus:
        """staff only"""
        self._require(session, Operation.UPDATE_ITEM_STATUS)
        return self.tracker.update_status(order_id, item_name, new_status, comments)

    def update_paid_flag(self, session: Session, order_id: int) -> Order:
        """staff only"""
        self._require(session, Operation.UPDATE_PAID_FLAG)
        return self.ledger.update_paid_flag(order_id)

    def order_history(self, session: Session, limit: int | None = ORDER_HISTORY_LIMIT) -> list[Order]:
        """the session user's latest orders"""
        self._require(session, Operation.VIEW_OWN_ORDERS)
        return self.ledger.history(session.login, limit)

    def order_status(self, session: Session, order_id: int) -> tuple[Order, list[ItemStatus]]:
        """order with its item rows"""
        self._require(session, Operation.VIEW_OWN_ORDERS)
        order = self._visible_order(session, order_id)
        return order, self.tracker.items_for_order(order_id)

    def recent_orders(self, session: Session, now: datetime | None = None) -> list[Order]:
        """last 24 hours, staff only"""
        self._require(session, Operation.VIEW_ALL_ORDERS)
        return self.ledger.recent(now=now)

    # search-and-select
    def search(self, session: Session, target: SearchTarget, query: str) -> list:
        """substring match over the target entity, scoped by role"""
        if target is SearchTarget.USER:
            self._require(session, Operation.MANAGE_USERS)
            return self.identity.search(query)
        if target is SearchTarget.MENU_ITEM:
            self._require(session, Operation.BROWSE_MENU)
            return self.menu.search(query)
        self._require(session, Operation.VIEW_OWN_ORDERS)
        if self.permits(session, Operation.VIEW_ALL_ORDERS):
            return self.ledger.search(query)
        return self.ledger.search(query, login=session.login)

# presentation helpers
def print_table(headers: Sequence[str], rows: Sequence[Sequence]) -> None:
    """render headers + rows as aligned columns"""
    if not rows:
        cprint("no results", "yellow"); return
    widths = [max(len(str(h)), *(len(str(r[i])) for r in rows)) for i, h in enumerate(headers)]
    print("  ".join(colored(str(h).ljust(w), "cyan", attrs=["bold"]) for h, w in zip(headers, widths)))
    for row in rows:
        print("  ".join(str(v).ljust(w) for v, w in zip(row, widths)))

def prompt_until(read_line: ReadLine, prompt: str, convert: Callable[[str], object]):
    """re-prompt in place until convert accepts the input; empty input returns none"""
    while True:
        raw = read_line(prompt)
        if not raw.strip():
            return None
        try:
            return convert(raw)
        except CafeError as e:
            cprint(str(e), "red")

def select_candidate(candidates: Sequence, label: Callable[[object], str], read_line: ReadLine):
    """narrow a candidate list by number or exact label; none if abandoned"""
    if not candidates:
        cprint("no matches", "red"); return None
    for i, c in enumerate(candidates):
        print(f"{colored(str(i), 'light_blue')}. {label(c)}")
    while True:
        raw = read_line(f"{len(candidates)} result(s); pick a number or type an exact match (blank to cancel): ").strip()
        if not raw:
            return None
        idx = safe_int(raw, minimum=0)
        if idx is not None and idx < len(candidates):
            return candidates[idx]
        exact = [c for c in candidates if label(c).lower() == raw.lower()]
        if exact:
            return exact[0]
        cprint("invalid selection", "red")

# command infrastructure
class Command:
    """bind a command name to a function"""
    def __init__(self, name: str, function: Callable, description: str,
                 operation: Operation | None = None, requires_login: bool = True):
        """operation None means any logged in user (or nobody, with requires_login False)"""
        self.name = name
        self._fn = function
        self.description = description
        self.operation = operation
        self.requires_login = requires_login or operation is not None

    def execute(self, tokens: list[str]):
        """validate arg count and invoke function"""
        sig = inspect.signature(self._fn)
        params = list(sig.parameters.values())
        required = sum(
            p.default == inspect.Parameter.empty and p.kind in (
                inspect.Parameter.POSITIONAL_OR_KEYWORD,
                inspect.Parameter.POSITIONAL_ONLY
            )
            for p in params
        )
        variadic = any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params)
        if len(tokens) < required or (not variadic and len(tokens) > len(params)):
            cprint(f"invalid args for '{self.name}' (expected {required}-{len(params)}, got {len(tokens)})", "red")
            return
        return self._fn(*tokens)

class CommandParser:
    """repl parser; owns the session of whoever is typing"""
    def __init__(self, dispatcher: Dispatcher, read_line: ReadLine = input):
        """read_line is input() unless a script is injected"""
        self.dispatcher = dispatcher
        self.read_line = read_line
        self.session: Session | None = None
        self.commands: list[Command] = [
            Command("help", self.show_help, "show this help", requires_login=False),
            Command("h", self.show_help, "alias help", requires_login=False),
            Command("quit", self.quit, "exit program", requires_login=False),
            Command("exit", lambda: cprint("use quit to exit", "yellow"), "alias quit", requires_login=False),
        ]

    def parse_and_execute(self, input_str: str):
        """parse the raw input string and attempt to execute a command"""
        tokens = input_str.strip().split()
        if not tokens:
            return
        # longest name first so 'menu find' wins over 'menu'
        for cmd in sorted(self.commands, key=lambda c: -len(c.name.split())):
            parts = cmd.name.split()
            if [t.lower() for t in tokens[:len(parts)]] != parts:
                continue
            if cmd.requires_login and self.session is None:
                cprint("please login/register first", "yellow"); return
            if cmd.operation is not None and not self.dispatcher.permits(self.session, cmd.operation):
                cprint("insufficient privileges", "red"); return
            args = tokens[len(parts):]
            try:
                return cmd.execute(args)
            except StoreFailure as e:
                cprint(f"database error, operation aborted: {e}", "red")
            except CafeError as e:
                cprint(str(e), "red")
            except EOFError:
                cprint("\ninput closed, operation aborted", "yellow")
            return
        cprint("unknown command. type 'help'", "red")

    def show_help(self):
        """display help with all available command names and descriptions"""
        cprint("available commands:", "green", attrs=["bold"])
        width = max(len(c.name) for c in self.commands)
        for cmd in self.commands:
            if cmd.operation is not None and not self.dispatcher.permits(self.session, cmd.operation):
                continue
            sig = inspect.signature(cmd._fn)
            params = " ".join(
                f"<{p}>" if prm.default == inspect.Parameter.empty else f"[{p}]"
                for p, prm in sig.parameters.items()
            )
            line = f"{colored(cmd.name,'blue')} {colored(params,'cyan')}".strip()
            print(line.ljust(width + 25), "-", cmd.description)

    def quit(self):
        """interactive quit confirmation"""
        ans = self.read_line(colored("are you sure you want to quit? (y/N): ", "yellow"))
        if parse_boolean_input(ans):
            cprint("okay, see ya!", "green")
            sys.exit(0)
        cprint("continuing...", "green")

    def start_repl(self):
        """main repl loop"""
        while True:
            try:
                user_input = self.read_line(colored("\n> ", "blue")).strip()
            except EOFError:
                print()
                break
            if user_input:
                self.parse_and_execute(user_input)

# session commands
class AccountCommands:
    """register / login / profile editing"""
    def __init__(self, parser: CommandParser):
        self.parser = parser
        self.dispatcher = parser.dispatcher

    @property
    def session(self) -> Session:
        """current session or none"""
        return self.parser.session

    def register(self, login: str | None = None):
        """create a customer account"""
        read = self.parser.read_line
        if login is None:
            login = prompt_until(read, colored("choose a login: ", "magenta"), validate_login)
            if login is None:
                cprint("cancelled", "yellow"); return
        password = prompt_until(read, colored("choose a password: ", "magenta"), validate_password)
        if password is None:
            cprint("cancelled", "yellow"); return
        phone = prompt_until(read, colored(f"phone number ({PHONE_LENGTH} chars, blank to skip): ", "magenta"),
                             validate_phone) or ""
        user = self.dispatcher.register(login, password, phone)
        cprint(f"account {colored(user.login, 'yellow', attrs=['bold'])} created, you can now log in", "green")

    def login(self, login: str | None = None):
        """log in; a failed attempt leaves nobody logged in"""
        if self.parser.session is not None:
            cprint("already logged in", "yellow")
            if not parse_boolean_input(self.parser.read_line("log out first? (y/N): ")):
                return
            self.logout()
        if login is None:
            login = self.parser.read_line(colored("login: ", "magenta")).strip()
        password = self.parser.read_line(colored("password: ", "magenta"))
        self.parser.session = self.dispatcher.login(login, password)
        role = self.parser.session.role
        prefix = f"{role.value.lower()}: " if role is not Role.CUSTOMER else ""
        cprint(f"logged in as {prefix}{colored(self.parser.session.login, 'yellow', attrs=['bold'])}", "green")

    def logout(self):
        """drop the current session"""
        if self.parser.session is None:
            cprint("no user logged in", "red"); return
        cprint(f"logged out {self.parser.session.login}", "green")
        self.parser.session = None

    def whoami(self):
        """print current user identity"""
        if self.session is None:
            cprint("no user currently logged in", "red"); return
        cprint(f"you are logged in as {colored(self.session.login, 'yellow', attrs=['bold'])} "
               f"({self.session.role.value})", "green")

    def profile(self):
        """print own profile"""
        user = self.dispatcher.view_profile(self.session)
        print_table(User.HEADERS, [user.as_row()])

    def update(self):
        """edit own profile; blank answers keep the current value"""
        self._edit_profile(None)

    def _edit_profile(self, login: str | None):
        """shared by update and admin users update"""
        read = self.parser.read_line
        cprint("enter new values, press enter to skip", "light_blue")
        phone = prompt_until(read, f"phone number ({PHONE_LENGTH} chars): ", validate_phone)
        password = prompt_until(read, f"password (max {MAX_PASSWORD_LENGTH}): ", validate_password)
        favorites = prompt_until(read, "favorite items, comma separated: ", validate_favorite_items)
        user = self.dispatcher.update_profile(self.session, login, phone_number=phone,
                                              password=password, favorite_items=favorites)
        cprint(f"profile for {user.login} updated", "green")
        print_table(User.HEADERS, [user.as_row()])

    def admin_find(self, query: str = ""):
        """search users and pick one"""
        users = self.dispatcher.search(self.session, SearchTarget.USER, query)
        return select_candidate(users, lambda u: u.login, self.parser.read_line)

    def admin_role(self, query: str = ""):
        """change a user's role"""
        user = self.admin_find(query)
        if user is None:
            return
        role = prompt_until(self.parser.read_line, f"new role for {user.login} (customer/employee/manager): ", Role.parse)
        if role is None:
            cprint("role not changed", "yellow"); return
        user = self.dispatcher.set_user_role(self.session, user.login, role)
        cprint(f"{user.login} is now {user.role.value}", "green")

    def admin_update(self, query: str = ""):
        """edit another user's profile"""
        user = self.admin_find(query)
        if user is not None:
            self._edit_profile(user.login)

class MenuCommands:
    """browse + manager menu maintenance"""
    def __init__(self, parser: CommandParser):
        self.parser = parser
        self.dispatcher = parser.dispatcher

    def show(self):
        """print menu grouped by item type"""
        cprint("today's menu", None, attrs=["bold"])
        items = self.dispatcher.list_menu(self.parser.session)
        if not items:
            cprint("menu empty", "red"); return
        current_type = None
        for item in items:
            if item.type.lower() != (current_type or "").lower():
                current_type = item.type
                cprint(f"\n{current_type}:", "green", attrs=["bold"])
            print(f"  {item.name}: {color_money(item.price)}" + (f"  {item.description}" if item.description else ""))

    def find(self, *words: str):
        """exact lookup by item name"""
        item = self.dispatcher.find_menu_item(self.parser.session, " ".join(words))
        print_table(MenuItem.HEADERS, [item.as_row()])

    def search(self, *words: str):
        """substring search, then pick one item to show"""
        item = self._pick(" ".join(words))
        if item is not None:
            print_table(MenuItem.HEADERS, [item.as_row()])

    def _pick(self, query: str):
        """choose among items whose name contains query; none if abandoned"""
        items = self.dispatcher.search(self.parser.session, SearchTarget.MENU_ITEM, query)
        return select_candidate(items, lambda m: m.name, self.parser.read_line)

    def _resolve(self, name: str):
        """exact name, falling back to search-and-select when it misses"""
        try:
            return self.dispatcher.find_menu_item(self.parser.session, name)
        except UnknownItem:
            if not self.dispatcher.search(self.parser.session, SearchTarget.MENU_ITEM, name):
                raise
            cprint(f"no exact match for '{name.strip()}', did you mean:", "yellow")
            return self._pick(name)

    def by_type(self, type: str):
        """list every item of one type"""
        items = self.dispatcher.browse_by_type(self.parser.session, type)
        print_table(MenuItem.HEADERS, [i.as_row() for i in items])

    def add(self, *words: str):
        """create a menu item; the name may span several words"""
        read = self.parser.read_line
        name = " ".join(words) or read("menu item name: ").strip()
        type = read("type: ").strip()
        price = prompt_until(read, "price: ", _price_or_fail)
        if price is None:
            cprint("invalid price", "red"); return
        description = read("description: ").strip()
        image_ref = read("image url: ").strip()
        item = self.dispatcher.create_menu_item(self.parser.session, MenuItem(name, type, price, description, image_ref))
        cprint(f"{item.name} added at {color_money(item.price)}", "green")

    def update(self, *words: str):
        """change one field of a menu item"""
        read = self.parser.read_line
        name = " ".join(words) or read("menu item name: ").strip()
        item = self._resolve(name)
        if item is None:
            cprint("cancelled", "yellow"); return
        field = read(f"field to change ({'/'.join(MenuCatalog.EDITABLE)}): ").strip().lower()
        if field not in MenuCatalog.EDITABLE:
            cprint("invalid field", "red"); return
        convert = _price_or_fail if field == "price" else str.strip
        value = prompt_until(read, f"new {field}: ", convert)
        if value is None:
            cprint("not changed", "yellow"); return
        item = self.dispatcher.update_menu_item(self.parser.session, item.name, **{field: value})
        cprint("updated", "green")
        print_table(MenuItem.HEADERS, [item.as_row()])

    def delete(self, *words: str):
        """remove a menu item; past orders keep their rows"""
        name = " ".join(words) or self.parser.read_line("menu item name: ").strip()
        item = self._resolve(name)
        if item is None:
            cprint("cancelled", "yellow"); return
        self.dispatcher.delete_menu_item(self.parser.session, item.name)
        cprint(f"{item.name} deleted", "green")

def _price_or_fail(raw: str) -> float:
    """price converter for prompt_until"""
    price = safe_price(raw)
    if price is None:
        raise InvalidField("price must be a non-negative number")
    return price

def _order_id_or_fail(raw: str) -> int:
    """order id converter for prompt_until"""
    oid = safe_int(raw.strip().lstrip("#"), minimum=1)
    if oid is None:
        raise InvalidField("order id must be a positive number")
    return oid

class OrderCommands:
    """placing, amending and tracking orders"""
    def __init__(self, parser: CommandParser):
        self.parser = parser
        self.dispatcher = parser.dispatcher

    @property
    def session(self) -> Session:
        """current session or none"""
        return self.parser.session

    def _order_id(self, raw: str | None) -> int | None:
        """parse an id argument or prompt for one"""
        if raw is not None:
            return _order_id_or_fail(raw)
        return prompt_until(self.parser.read_line, "order id: ", _order_id_or_fail)

    def _report(self, error: CafeError):
        """print a domain error raised inside the selection loop"""
        cprint(str(error), "red")

    def create(self):
        """start an order and keep adding items until q"""
        order = self.dispatcher.begin_order(self.session)
        cprint(f"order #{order.order_id} created", "green")
        self._fill(order.order_id)

    def add(self, order_id: str | None = None):
        """add more items to an unpaid order"""
        oid = self._order_id(order_id)
        if oid is not None:
            self._fill(oid)

    def _fill(self, order_id: int):
        """run the selection loop, then show the order"""
        order = self.dispatcher.run_selection_loop(self.session, order_id, self.parser.read_line, self._report)
        self._print_status(order)

    def comment(self, order_id: str | None = None):
        """change comments on one item"""
        oid = self._order_id(order_id)
        if oid is None:
            return
        name = self.parser.read_line("item name: ").strip()
        comments = self.parser.read_line("new comments: ").strip()
        status = self.dispatcher.update_comments(self.session, oid, name, comments)
        cprint(f"comments on {status.item_name} updated", "green")

    def finalize(self, order_id: str | None = None):
        """recompute an order's total"""
        oid = self._order_id(order_id)
        if oid is not None:
            self._print_status(self.dispatcher.finalize_order(self.session, oid))

    def history(self):
        """most recent orders first"""
        orders = self.dispatcher.order_history(self.session)
        print_table(Order.HEADERS, [o.as_row() for o in orders])

    def status(self, order_id: str | None = None):
        """show an order and its items"""
        oid = self._order_id(order_id)
        if oid is None:
            return
        order, _ = self.dispatcher.order_status(self.session, oid)
        self._print_status(order)

    def find(self, query: str = ""):
        """search orders and pick one"""
        orders = self.dispatcher.search(self.session, SearchTarget.ORDER, query)
        order = select_candidate(orders, lambda o: f"#{o.order_id} ({o.login})", self.parser.read_line)
        if order is not None:
            self._print_status(order)

    def _print_status(self, order: Order):
        """header line plus item table"""
        _, items = self.dispatcher.order_status(self.session, order.order_id)
        cprint(f"order #{order.order_id} for {order.login}: total {color_money(order.total)}, "
               f"{'paid' if order.paid else 'unpaid'}", "green")
        print_table(ItemStatus.HEADERS, [i.as_row() for i in items])

    # staff
    def mark_paid(self, order_id: str | None = None):
        """mark an order paid"""
        oid = self._order_id(order_id)
        if oid is not None:
            order = self.dispatcher.update_paid_flag(self.session, oid)
            cprint(f"order #{order.order_id} is now paid ({color_money(order.total)})", "green")

    def set_status(self, order_id: str | None = None):
        """move one item to a new status"""
        read = self.parser.read_line
        oid = self._order_id(order_id)
        if oid is None:
            return
        name = read("item name: ").strip()
        state = prompt_until(read, "new status (NotStarted/InProgress/Complete): ", ItemState.parse)
        if state is None:
            cprint("status not changed", "yellow"); return
        comments = read("comments (blank to keep): ").strip() or None
        status = self.dispatcher.update_status(self.session, oid, name, state, comments)
        cprint(f"{status.item_name} on order #{oid} is now {status.status.value}", "green")

    def recent(self):
        """orders received in the last 24 hours"""
        orders = self.dispatcher.recent_orders(self.session)
        print_table(Order.HEADERS, [o.as_row() for o in orders])

# application wiring
class Application:
    """bootstrap objects & start repl"""
    def __init__(self, *args: str, path: str = DB_PATH, read_line: ReadLine = input):
        try:
            self.store = Store(path)
            self.store.seed_defaults()
        except StoreFailure as e:
            cprint(f"unable to connect to database: {e}", "red")
            sys.exit(1)
        atexit.register(self.store.close)
        self.dispatcher = Dispatcher(self.store)
        parser = CommandParser(self.dispatcher, read_line)
        accounts = AccountCommands(parser)
        menu = MenuCommands(parser)
        orders = OrderCommands(parser)

        # account commands
        parser.commands += [
            Command("account register", accounts.register, "create a customer account", requires_login=False),
            Command("account login", accounts.login, "login", requires_login=False),
            Command("account logout", accounts.logout, "logout", requires_login=False),
            Command("account whoami", accounts.whoami, "current user", requires_login=False),
            Command("account profile", accounts.profile, "show your profile", Operation.EDIT_OWN_PROFILE),
            Command("account update", accounts.update, "edit your profile", Operation.EDIT_OWN_PROFILE),
        ]

        # customer commands
        parser.commands += [
            Command("menu", menu.show, "show menu", Operation.BROWSE_MENU),
            Command("menu find", menu.find, "look up an item by name", Operation.BROWSE_MENU),
            Command("menu type", menu.by_type, "list items of one type", Operation.BROWSE_MENU),
            Command("menu search", menu.search, "search the menu and pick an item", Operation.BROWSE_MENU),
            Command("order create", orders.create, "start an order", Operation.PLACE_ORDER),
            Command("order add", orders.add, "add items to an unpaid order", Operation.AMEND_OWN_ORDER),
            Command("order comment", orders.comment, "change an item's comments", Operation.AMEND_OWN_ORDER),
            Command("order finalize", orders.finalize, "recompute an order total", Operation.PLACE_ORDER),
            Command("order history", orders.history, "your recent orders", Operation.VIEW_OWN_ORDERS),
            Command("order status", orders.status, "item status of an order", Operation.VIEW_OWN_ORDERS),
            Command("order find", orders.find, "search orders", Operation.VIEW_OWN_ORDERS),
        ]

        # staff commands
        parser.commands += [
            Command("staff paid", orders.mark_paid, "mark an order paid", Operation.UPDATE_PAID_FLAG),
            Command("staff status", orders.set_status, "update an item's status", Operation.UPDATE_ITEM_STATUS),
            Command("staff recent", orders.recent, "orders from the last 24h", Operation.VIEW_ALL_ORDERS),
        ]

        # manager commands
        parser.commands += [
            Command("admin menu add", menu.add, "add menu item", Operation.MANAGE_MENU),
            Command("admin menu update", menu.update, "update a menu item", Operation.MANAGE_MENU),
            Command("admin menu delete", menu.delete, "delete menu item", Operation.MANAGE_MENU),
            Command("admin users find", accounts.admin_find, "search users", Operation.MANAGE_USERS),
            Command("admin users role", accounts.admin_role, "change a user's role", Operation.MANAGE_USERS),
            Command("admin users update", accounts.admin_update, "edit a user's profile", Operation.MANAGE_USERS),
        ]
        self.parser = parser

        cprint("""
welcome to the cafe ☕
orders, menu and kitchen status in one place
    """, "green", attrs=["bold"])

        print("""for more information, type 'help' or 'h' at any time.
to exit the program, type 'quit'.""")

        if args:
            parser.parse_and_execute(" ".join(args))
        parser.start_repl()

# signal handler
class SignalHandler:
    """custom ctrl+c handler"""
    @staticmethod
    def sigint(_, __):
        """handle ctrl+c"""
        cprint("\nnext time, use quit!", "yellow")
        sys.exit(0)

# entry point
def main():
    """entrypoint wrapper"""
    # fix windows terminal misinterpreting ansi escape sequences
    enable_windows_ansi_interpretation()
    logging.basicConfig(level=LOG_LEVEL.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    signal.signal(signal.SIGINT, SignalHandler.sigint)
    Application(*sys.argv[1:])

if __name__ == "__main__":
    main()
