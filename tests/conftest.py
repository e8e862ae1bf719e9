"""Shared pytest fixtures: an in-memory directory and config helpers."""

from typing import Dict, List, Set

import pytest

from changeprimarydomain.config import MigrationConfig
from changeprimarydomain.errors import NotFound, TransportError
from changeprimarydomain.models import Customer, Principal


class FakeDirectory:
    """In-memory stand-in for DirectoryClient.

    Renaming a principal keeps its previous primary as an alias, as the
    Admin SDK does. Every mutating call is recorded in ``calls``.
    """

    def __init__(self, customer_id: str = "C0123", primary_domain: str = "old.com"):
        self.customer = Customer(customer_id, primary_domain)
        self.records: Dict[str, Dict[str, dict]] = {"users": {}, "groups": {}}
        self.calls: List[tuple] = []
        self.list_scopes: List[tuple] = []
        self.fail_get_customer = False
        self.fail_update_customer = False
        self.fail_list: Set[str] = set()
        self.fail_updates: Set[str] = set()
        self.fail_aliases: Set[str] = set()

    # -------- seeding / inspection --------
    def add_user(self, uid: str, email: str, aliases=(), name: str = ""):
        self.records["users"][uid] = {"email": email, "aliases": list(aliases), "name": name or uid}

    def add_group(self, gid: str, email: str, aliases=(), name: str = ""):
        self.records["groups"][gid] = {"email": email, "aliases": list(aliases), "name": name or gid}

    def reachable(self, kind: str, pid: str) -> Set[str]:
        rec = self.records[kind][pid]
        return {rec["email"], *rec["aliases"]}

    def snapshot(self, kind: str) -> Dict[str, Set[str]]:
        return {pid: self.reachable(kind, pid) for pid in self.records[kind]}

    # -------- internals --------
    def _principal(self, kind: str, pid: str) -> Principal:
        rec = self.records[kind][pid]
        return Principal(pid, rec["email"], tuple(rec["aliases"]), rec["name"])

    def _list(self, kind: str, scope: str, page_size: int, order_by: str):
        self.list_scopes.append((kind, scope, page_size, order_by))
        if kind in self.fail_list:
            raise TransportError(f"list {kind}", "backend error", 500)
        for pid in sorted(self.records[kind], key=lambda i: self.records[kind][i]["email"]):
            yield self._principal(kind, pid)

    def _rename(self, kind: str, pid: str, email: str) -> Principal:
        self.calls.append((f"update_{kind[:-1]}", pid, email))
        if pid in self.fail_updates:
            raise TransportError(f"update {kind[:-1]} {pid}", "invalid", 400)
        rec = self.records[kind][pid]
        if rec["email"] != email and rec["email"] not in rec["aliases"]:
            rec["aliases"].append(rec["email"])
        rec["email"] = email
        return self._principal(kind, pid)

    def _insert_alias(self, kind: str, pid: str, alias: str) -> dict:
        self.calls.append((f"insert_{kind[:-1]}_alias", pid, alias))
        if alias in self.fail_aliases:
            raise TransportError(f"insert alias {alias}", "conflict", 409)
        rec = self.records[kind][pid]
        rec["aliases"].append(alias)
        return {"alias": alias, "primaryEmail": rec["email"]}

    # -------- DirectoryClient surface --------
    def get_customer(self, customer_key: str = "my_customer") -> Customer:
        if self.fail_get_customer:
            raise NotFound(f"get customer {customer_key}", "not found", 404)
        return self.customer

    def update_customer(self, customer_id: str, patch: dict) -> Customer:
        self.calls.append(("update_customer", customer_id, patch["customerDomain"]))
        if self.fail_update_customer:
            raise TransportError(f"update customer {customer_id}", "forbidden", 403)
        self.customer = Customer(customer_id, patch["customerDomain"])
        return self.customer

    def list_users(self, customer: str, page_size: int = 200, order_by: str = "email"):
        return self._list("users", customer, page_size, order_by)

    def update_user(self, user_id: str, patch: dict) -> Principal:
        return self._rename("users", user_id, patch["primaryEmail"])

    def insert_user_alias(self, user_id: str, alias: str) -> dict:
        return self._insert_alias("users", user_id, alias)

    def list_groups(self, customer: str, page_size: int = 200, order_by: str = "email"):
        return self._list("groups", customer, page_size, order_by)

    def update_group(self, group_id: str, patch: dict) -> Principal:
        return self._rename("groups", group_id, patch["email"])

    def insert_group_alias(self, group_id: str, alias: str) -> dict:
        return self._insert_alias("groups", group_id, alias)


@pytest.fixture
def directory() -> FakeDirectory:
    """Directory with the primary domain still on old.com and a few principals."""
    d = FakeDirectory()
    d.add_user("u1", "alice@old.com", ["alice@old.com"], name="Alice")
    d.add_user("u2", "bob@old.com", ["robert@old.com"], name="Bob")
    d.add_user("u3", "carol@new.com", name="Carol")
    d.add_group("g1", "team@old.com", ["team-alias@old.com", "team-alias@new.com"], name="Team")
    d.add_group("g2", "ops@old.com", ["oncall@old.com"], name="Ops")
    return d


@pytest.fixture
def config() -> MigrationConfig:
    return MigrationConfig.create("old.com", "new.com", rps=0)


@pytest.fixture
def make_config():
    def _make(**overrides) -> MigrationConfig:
        overrides.setdefault("rps", 0)
        return MigrationConfig.create(
            overrides.pop("old_domain", "old.com"), overrides.pop("new_domain", "new.com"), **overrides
        )

    return _make


@pytest.fixture
def answers():
    """Confirmation port fed from a list of canned answers."""

    class Scripted:
        def __init__(self, replies: List[bool]):
            self.replies = list(replies)
            self.prompts: List[str] = []

        def ask(self, prompt: str) -> bool:
            self.prompts.append(prompt)
            return self.replies.pop(0)

    def _make(*replies: bool) -> Scripted:
        return Scripted(list(replies))

    return _make
