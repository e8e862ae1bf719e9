from typing import NamedTuple, Tuple


class Customer(NamedTuple):
    id: str
    primary_domain: str


class Principal(NamedTuple):
    """A user or group: primary address plus editable aliases in listing order."""

    id: str
    primary_email: str
    aliases: Tuple[str, ...] = ()
    name: str = ""

    @property
    def label(self) -> str:
        return f"{self.primary_email} ({self.name})" if self.name else self.primary_email
