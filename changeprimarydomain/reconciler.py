"""
Rename planning for a single principal.

Pure functions only: given the principal as the directory returns it and the
old/new domain pair, decide which primary rewrite and alias inserts bring it
onto the new domain. Plans are computed from live state on every run, so a
second run over a converted directory plans nothing.
"""

from typing import List, NamedTuple, Set, Tuple

from .errors import MalformedAddress
from .models import Principal


class RenamePlan(NamedTuple):
    current_primary: str
    new_primary: str
    old_primary_alias: str
    aliases_to_add: Tuple[str, ...]

    @property
    def already_current(self) -> bool:
        return self.new_primary == self.current_primary

    @property
    def is_noop(self) -> bool:
        return self.already_current and not self.aliases_to_add


def split_address(address: str) -> Tuple[str, str]:
    parts = address.split("@")
    if len(parts) != 2 or not parts[0]:
        raise MalformedAddress(address)
    return parts[0], parts[1]


def change_email_domain(address: str, domain: str) -> str:
    """Return ``address`` with its domain replaced; the local part is kept verbatim."""
    local, _ = split_address(address)
    return f"{local}@{domain}"


def address_key(address: str) -> str:
    # Directory addresses are matched case-insensitively.
    return address.lower()


def plan_principal_rename(principal: Principal, old_domain: str, new_domain: str) -> RenamePlan:
    _, current_domain = split_address(principal.primary_email)
    if current_domain.lower() == new_domain.lower():
        new_primary = principal.primary_email
    else:
        new_primary = change_email_domain(principal.primary_email, new_domain)
    # Address the current primary answers to on the old domain.
    old_primary_alias = change_email_domain(principal.primary_email, old_domain)

    # The new primary counts as taken: an alias may not repeat it.
    existing: Set[str] = {address_key(a) for a in principal.aliases}
    existing.add(address_key(new_primary))
    to_add: List[str] = []
    for alias in principal.aliases:
        if address_key(alias) == address_key(old_primary_alias):
            continue
        candidate = change_email_domain(alias, new_domain)
        if address_key(candidate) in existing:
            continue
        existing.add(address_key(candidate))
        to_add.append(candidate)

    # The old primary itself is not scheduled as an alias: the Directory API
    # keeps the previous primary address as an alias when a principal is renamed.
    return RenamePlan(
        current_primary=principal.primary_email,
        new_primary=new_primary,
        old_primary_alias=old_primary_alias,
        aliases_to_add=tuple(to_add),
    )
