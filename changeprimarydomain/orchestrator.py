"""
Migration driver: customer domain swap, then users, then groups.

Fatal problems (customer read/update, listings, unreadable confirmation)
propagate as exceptions. Per-record problems (one rename, one alias) are
printed, counted and skipped so a re-run can pick them up.
"""

import sys
from collections import Counter
from typing import Callable, Dict, Iterable, List, Optional

from .config import MigrationConfig
from .errors import ConfirmationError, DomainChangeError, UserAbort
from .models import Customer, Principal
from .reconciler import plan_principal_rename

REPORT_KEYS = ("renamed", "already_current", "failed", "aliases_added", "alias_failures")


class ConfirmationPort:
    def ask(self, prompt: str) -> bool:
        raise NotImplementedError


class StdinConfirmation(ConfirmationPort):
    def __init__(self, input_fn: Optional[Callable[[str], str]] = None):
        self._input = input_fn or input

    def ask(self, prompt: str) -> bool:
        try:
            answer = self._input(f"{prompt} (y/n): ")
        except (EOFError, OSError) as e:
            raise ConfirmationError(f"unable to read response: {e!r}") from e
        return answer.strip().lower() in ("y", "yes")


class AutoConfirmation(ConfirmationPort):
    """Answers every gate the same way; prompts are echoed for the log."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.prompts: List[str] = []

    def ask(self, prompt: str) -> bool:
        self.prompts.append(prompt)
        print(f"{prompt} (y/n): {'y' if self.answer else 'n'}")
        return self.answer


class MigrationOrchestrator:
    def __init__(self, directory, config: MigrationConfig, confirm: ConfirmationPort):
        self.directory = directory
        self.config = config
        self.confirm = confirm
        self.report: Dict[str, Counter] = {"users": Counter(), "groups": Counter()}

    def _dry(self, msg: str):
        print(f"[DRY RUN] {msg}")

    def run(self) -> Dict[str, Dict[str, int]]:
        cfg = self.config
        print(f"Changing primary domain - old domain: {cfg.old_domain}, new domain: {cfg.new_domain}")
        self.change_primary_domain()
        # re-read so the group pass is scoped by the customer's real id
        customer = self.directory.get_customer(cfg.customer)
        self.update_users()
        self.update_groups(customer)
        self.print_summary()
        return self.summary()

    # -------------------- customer --------------------
    def change_primary_domain(self) -> Customer:
        cfg = self.config
        cust = self.directory.get_customer(cfg.customer)

        if cust.primary_domain.lower() == cfg.new_domain:
            if cfg.dry_run:
                self._dry(f"Primary domain for customer Id {cust.id} is already {cfg.new_domain}")
                return cust
            if self.confirm.ask(
                f"Primary domain for customer Id {cust.id} is already {cfg.new_domain}, "
                "continue checking users and groups?"
            ):
                return cust
            raise UserAbort("Done.")

        summary = (f"customer Id {cust.id} primary domain from {cust.primary_domain} "
                   f"to {cfg.new_domain}")
        if cfg.dry_run:
            self._dry(f"Would update {summary}")
            return cust
        if not self.confirm.ask(f"About to update {summary}, continue?"):
            raise UserAbort("Abort!")

        print(f"\nUpdating {summary} ... ", end="")
        updated = self.directory.update_customer(cust.id, {"customerDomain": cfg.new_domain})
        print("Done.\n")
        return updated

    # -------------------- principals --------------------
    def update_users(self):
        cfg = self.config
        users = list(self.directory.list_users(cfg.customer, page_size=cfg.page_size, order_by="email"))
        self._rename_all("users", "user", users,
                         update_fn=lambda p, email: self.directory.update_user(p.id, {"primaryEmail": email}),
                         insert_alias_fn=self.directory.insert_user_alias)

    def update_groups(self, customer: Customer):
        cfg = self.config
        groups = list(self.directory.list_groups(customer.id, page_size=cfg.page_size, order_by="email"))
        self._rename_all("groups", "group", groups,
                         update_fn=lambda p, email: self.directory.update_group(p.id, {"email": email}),
                         insert_alias_fn=self.directory.insert_group_alias)

    def _rename_all(self, kind: str, noun: str, principals: Iterable[Principal], *, update_fn, insert_alias_fn):
        principals = list(principals)
        if not principals:
            print(f"No {kind} found.")
            return
        print(f"\n{kind.capitalize()}:")
        for p in principals:
            self._rename_one(kind, noun, p, update_fn, insert_alias_fn)

    def _rename_one(self, kind: str, noun: str, p: Principal, update_fn, insert_alias_fn):
        cfg = self.config
        counts = self.report[kind]
        try:
            plan = plan_principal_rename(p, cfg.old_domain, cfg.new_domain)
        except DomainChangeError as e:
            print(f"[ERROR] Unable to plan {noun} {p.label}: {e}", file=sys.stderr)
            counts["failed"] += 1
            return

        if plan.already_current:
            print(f"Email address for {p.name or p.id} is already {plan.new_primary}")
            counts["already_current"] += 1
        elif cfg.dry_run:
            self._dry(f"Would change {noun} {p.label} to {plan.new_primary}")
            counts["planned"] += 1
        else:
            print(f"Changing primary domain for {noun}: {p.label} to {plan.new_primary} ... ", end="")
            try:
                update_fn(p, plan.new_primary)
            except DomainChangeError as e:
                print("Failed.")
                print(f"[ERROR] Unable to update {noun}: {p.label} - {e}", file=sys.stderr)
                counts["failed"] += 1
            else:
                print("Done.")
                counts["renamed"] += 1

        self._add_aliases(kind, noun, p, plan, insert_alias_fn)

    def _add_aliases(self, kind: str, noun: str, p: Principal, plan, insert_alias_fn):
        cfg = self.config
        counts = self.report[kind]
        print(f" Checking {noun} {plan.new_primary} email aliases on old domain {cfg.old_domain} ...")
        if cfg.verbose:
            for a in p.aliases:
                print(f" - existing alias: {a}")
        for alias in plan.aliases_to_add:
            if cfg.dry_run:
                self._dry(f" - would add alias {alias}")
                counts["planned"] += 1
                continue
            print(f" - new alias: {alias} ... ", end="")
            try:
                insert_alias_fn(p.id, alias)
            except DomainChangeError as e:
                print("Failed.")
                print(f"[ERROR] Could not add new alias {alias} for {noun} {plan.new_primary}: {e}", file=sys.stderr)
                counts["alias_failures"] += 1
                continue
            print("Done.")
            counts["aliases_added"] += 1
        print(f" Done checking {noun} {plan.new_primary} email aliases on {cfg.old_domain}.")

    # -------------------- reporting --------------------
    def summary(self) -> Dict[str, Dict[str, int]]:
        keys = REPORT_KEYS + (("planned",) if self.config.dry_run else ())
        return {kind: {k: counts[k] for k in keys} for kind, counts in self.report.items()}

    def print_summary(self):
        print("\nSummary:")
        for kind, counts in self.summary().items():
            line = ", ".join(f"{k.replace('_', ' ')}: {v}" for k, v in counts.items())
            print(f"  {kind}: {line}")
        failures = sum(c["failed"] + c["alias_failures"] for c in self.report.values())
        if failures:
            print(f"[WARN] {failures} record(s) failed; re-run to retry them.", file=sys.stderr)
