"""
Credentials for the Directory API.

Two ways in:
  - Interactive OAuth (installed app): client_secret.json from the Cloud
    console, token cached under ~/.credentials keyed by the new domain.
  - Service Account with Domain-Wide Delegation (DWD), impersonating an
    admin; the key comes from a file or from Secret Manager.

If you change SCOPES, delete the cached token so the consent screen runs again.
"""

import json
import os
import sys
from typing import Optional
from urllib.parse import quote

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.cloud import secretmanager
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build

from .errors import ConfigError

SCOPES = [
    "https://www.googleapis.com/auth/admin.directory.user",
    "https://www.googleapis.com/auth/admin.directory.customer",
    "https://www.googleapis.com/auth/admin.directory.group",
]


def token_cache_file(new_domain: str, home: Optional[str] = None) -> str:
    cache_dir = os.path.join(home or os.path.expanduser("~"), ".credentials")
    os.makedirs(cache_dir, mode=0o700, exist_ok=True)
    return os.path.join(cache_dir, quote(f"changeprimarydomain-{new_domain}.json", safe=""))


def load_cached_credentials(path: str) -> Optional[Credentials]:
    if not os.path.exists(path):
        return None
    try:
        return Credentials.from_authorized_user_file(path, SCOPES)
    except ValueError:
        # unreadable cache is treated as a miss; the flow below rewrites it
        return None


def save_credentials(path: str, creds: Credentials):
    print(f"Saving credential file to: {path}")
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as fh:
        fh.write(creds.to_json())
    os.chmod(path, 0o600)


def get_oauth_credentials(client_secret_path: str, new_domain: str, *, open_browser: bool = True) -> Credentials:
    cache_path = token_cache_file(new_domain)
    creds = load_cached_credentials(cache_path)
    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as e:
            # revoked or expired grant; run the consent flow again
            print(f"[WARN] cached token could not be refreshed: {e}", file=sys.stderr)
            creds = None

    if not (creds and creds.valid):
        if not os.path.exists(client_secret_path):
            raise ConfigError(
                f"{client_secret_path} not found; download an OAuth client (Desktop app) "
                "from https://console.developers.google.com/project"
            )
        flow = InstalledAppFlow.from_client_secrets_file(client_secret_path, SCOPES)
        print("Authorize this tool in your browser to continue...")
        creds = flow.run_local_server(port=0, open_browser=open_browser)

    save_credentials(cache_path, creds)
    return creds


def get_service_account_credentials(sa_key_path: str, subject: str):
    if not os.path.exists(sa_key_path):
        raise ConfigError(f"service account key {sa_key_path} not found")
    creds = service_account.Credentials.from_service_account_file(sa_key_path, scopes=SCOPES)
    return creds.with_subject(subject)


def load_sa_credentials_from_secret(secret_resource_id: str, subject: str, version: str = "latest"):
    # secret_resource_id like: projects/123/secrets/workspace-dwd-sa-key
    client = secretmanager.SecretManagerServiceClient()
    name = f"{secret_resource_id}/versions/{version}"
    payload = client.access_secret_version(request={"name": name}).payload.data
    info = json.loads(payload.decode("utf-8"))
    creds = service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
    return creds.with_subject(subject)


def build_directory_service(creds):
    return build("admin", "directory_v1", credentials=creds, cache_discovery=False)
