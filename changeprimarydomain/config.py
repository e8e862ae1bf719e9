from typing import NamedTuple

from .errors import ConfigError

DEFAULT_CUSTOMER = "my_customer"
DEFAULT_PAGE_SIZE = 200  # Admin SDK allows up to 500 for users, 200 for groups
DEFAULT_RPS = 5.0
DEFAULT_MAX_RETRIES = 5


def normalize_domain(value: str, flag: str) -> str:
    domain = (value or "").strip().lower()
    if not domain:
        raise ConfigError(f"{flag} must not be empty")
    if "@" in domain:
        raise ConfigError(f"{flag} must be a bare domain, got {value!r}")
    return domain


class MigrationConfig(NamedTuple):
    old_domain: str
    new_domain: str
    customer: str = DEFAULT_CUSTOMER
    page_size: int = DEFAULT_PAGE_SIZE
    rps: float = DEFAULT_RPS
    max_retries: int = DEFAULT_MAX_RETRIES
    dry_run: bool = False
    verbose: bool = False

    @classmethod
    def create(cls, old_domain: str, new_domain: str, **kwargs) -> "MigrationConfig":
        """Validate and normalise raw settings (CLI flags or environment)."""
        cfg = cls(
            old_domain=normalize_domain(old_domain, "--old-domain"),
            new_domain=normalize_domain(new_domain, "--new-domain"),
            **kwargs,
        )
        if not cfg.customer:
            raise ConfigError("--customer must not be empty")
        if not 1 <= cfg.page_size <= 200:
            raise ConfigError(f"--page-size must be between 1 and 200, got {cfg.page_size}")
        if cfg.rps < 0:
            raise ConfigError("--rps must not be negative")
        if cfg.max_retries < 0:
            raise ConfigError("--max-retries must not be negative")
        return cfg
