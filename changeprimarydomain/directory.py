"""
Admin SDK Directory access: customer, users, groups and their aliases.

All calls go through one executor with light pacing and exponential backoff
on rate-limit / 5xx responses. Failures surface as TransportError / NotFound;
deciding whether they are fatal is left to the caller.
"""

import random
import sys
import time
from typing import Any, Callable, Dict, Iterator, Optional

import httplib2
from googleapiclient.errors import HttpError

from .errors import NotFound, TransportError
from .models import Customer, Principal

RETRY_STATUSES = (429, 500, 502, 503, 504)
USER_FIELDS = "users(id,primaryEmail,name/fullName,aliases),nextPageToken"
GROUP_FIELDS = "groups(id,email,name,aliases),nextPageToken"


# -------------------- pacing --------------------
def pace(rps: float):
    # stay well below the per-user 10 rps limit
    if rps > 0:
        time.sleep(1.0 / rps + random.random() * 0.05)


def backoff_sleep(attempt: int):
    # attempt = 0,1,2,... exponential backoff with jitter (max ~32s)
    delay = min(32, (2 ** attempt)) + random.random()
    time.sleep(delay)


def http_status(e: HttpError) -> Optional[int]:
    return getattr(e, "resp", None).status if getattr(e, "resp", None) else None


def is_retryable(e: HttpError) -> bool:
    msg = str(e)
    return http_status(e) in RETRY_STATUSES or "rateLimitExceeded" in msg or "userRateLimitExceeded" in msg


# -------------------- record translation --------------------
def customer_from_api(c: Dict[str, Any]) -> Customer:
    return Customer(id=c["id"], primary_domain=c.get("customerDomain", ""))


def user_from_api(u: Dict[str, Any]) -> Principal:
    return Principal(
        id=u["id"],
        primary_email=u.get("primaryEmail", ""),
        aliases=tuple(u.get("aliases") or ()),
        name=(u.get("name") or {}).get("fullName") or "",
    )


def group_from_api(g: Dict[str, Any]) -> Principal:
    return Principal(
        id=g["id"],
        primary_email=g.get("email", ""),
        aliases=tuple(g.get("aliases") or ()),
        name=g.get("name") or "",
    )


class DirectoryClient:
    """Thin wrapper over a ``build("admin", "directory_v1")`` service object."""

    def __init__(self, svc, *, rps: float = 5.0, max_retries: int = 5, verbose: bool = False,
                 sleep_fn: Callable[[int], None] = backoff_sleep, pace_fn: Callable[[float], None] = pace):
        self.svc = svc
        self.rps = rps
        self.max_retries = max_retries
        self.verbose = verbose
        self._backoff = sleep_fn
        self._pace = pace_fn

    def _execute(self, req, operation: str) -> Dict[str, Any]:
        self._pace(self.rps)
        last_exc: Optional[HttpError] = None
        for attempt in range(self.max_retries + 1):
            try:
                return req.execute()
            except HttpError as e:
                last_exc = e
                status = http_status(e)
                if status == 404:
                    raise NotFound(operation, str(e), status) from e
                if is_retryable(e) and attempt < self.max_retries:
                    if self.verbose:
                        print(f"[WARN] {operation} backoff attempt {attempt+1}: {status}", file=sys.stderr)
                    self._backoff(attempt)
                    continue
                raise TransportError(operation, str(e), status) from e
            except (httplib2.HttpLib2Error, OSError) as e:
                raise TransportError(operation, str(e)) from e
        raise TransportError(operation, f"retries exhausted: {last_exc}", http_status(last_exc))

    def _paginate(self, collection, list_kwargs: Dict[str, Any], key: str, operation: str) -> Iterator[Dict[str, Any]]:
        req = collection.list(**list_kwargs)
        while req is not None:
            resp = self._execute(req, operation)
            for item in resp.get(key, []):
                yield item
            req = collection.list_next(previous_request=req, previous_response=resp)

    # -------------------- customer --------------------
    def get_customer(self, customer_key: str = "my_customer") -> Customer:
        req = self.svc.customers().get(customerKey=customer_key)
        return customer_from_api(self._execute(req, f"get customer {customer_key}"))

    def update_customer(self, customer_id: str, patch: Dict[str, Any]) -> Customer:
        req = self.svc.customers().patch(customerKey=customer_id, body=patch)
        return customer_from_api(self._execute(req, f"update customer {customer_id}"))

    # -------------------- users --------------------
    def list_users(self, customer: str, page_size: int = 200, order_by: str = "email") -> Iterator[Principal]:
        list_kwargs = dict(customer=customer, maxResults=page_size, orderBy=order_by, fields=USER_FIELDS)
        for u in self._paginate(self.svc.users(), list_kwargs, "users", "list users"):
            yield user_from_api(u)

    def update_user(self, user_id: str, patch: Dict[str, Any]) -> Principal:
        req = self.svc.users().patch(userKey=user_id, body=patch)
        return user_from_api(self._execute(req, f"update user {user_id}"))

    def insert_user_alias(self, user_id: str, alias: str) -> Dict[str, Any]:
        req = self.svc.users().aliases().insert(userKey=user_id, body={"alias": alias})
        return self._execute(req, f"insert alias {alias} for user {user_id}")

    # -------------------- groups --------------------
    def list_groups(self, customer: str, page_size: int = 200, order_by: str = "email") -> Iterator[Principal]:
        list_kwargs = dict(customer=customer, maxResults=page_size, orderBy=order_by, fields=GROUP_FIELDS)
        for g in self._paginate(self.svc.groups(), list_kwargs, "groups", "list groups"):
            yield group_from_api(g)

    def update_group(self, group_id: str, patch: Dict[str, Any]) -> Principal:
        req = self.svc.groups().patch(groupKey=group_id, body=patch)
        return group_from_api(self._execute(req, f"update group {group_id}"))

    def insert_group_alias(self, group_id: str, alias: str) -> Dict[str, Any]:
        req = self.svc.groups().aliases().insert(groupKey=group_id, body={"alias": alias})
        return self._execute(req, f"insert alias {alias} for group {group_id}")
