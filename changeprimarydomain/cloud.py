"""
Unattended entry point (Cloud Function / Cloud Run job).

Configuration comes from the environment; the DWD service account key is
pulled from Secret Manager. Every confirmation gate is answered yes, so set
DRY_RUN=true for a first pass.
"""

import json
import os

from . import auth
from .config import DEFAULT_CUSTOMER, MigrationConfig
from .directory import DirectoryClient
from .orchestrator import AutoConfirmation, MigrationOrchestrator


def config_from_env(env=None) -> MigrationConfig:
    env = os.environ if env is None else env
    return MigrationConfig.create(
        env.get("OLD_DOMAIN", ""),
        env.get("NEW_DOMAIN", ""),
        customer=env.get("CUSTOMER") or DEFAULT_CUSTOMER,
        page_size=int(env.get("PAGE_SIZE", "200")),
        rps=float(env.get("RPS", "5")),
        max_retries=int(env.get("MAX_RETRIES", "5")),
        dry_run=env.get("DRY_RUN", "false").lower() == "true",
        verbose=env.get("VERBOSE", "false").lower() == "true",
    )


def run(event=None, context=None):
    cfg = config_from_env()
    imp = os.environ["IMPERSONATE_EMAIL"]
    secret_resource_id = os.environ["SECRET_RESOURCE_ID"]
    secret_version = os.environ.get("SECRET_VERSION", "latest")

    creds = auth.load_sa_credentials_from_secret(secret_resource_id, imp, secret_version)
    svc = auth.build_directory_service(creds)
    directory = DirectoryClient(svc, rps=cfg.rps, max_retries=cfg.max_retries, verbose=cfg.verbose)

    report = MigrationOrchestrator(directory, cfg, AutoConfirmation(True)).run()

    result = {"status": "ok", "dry_run": cfg.dry_run, **report}
    print(json.dumps(result))
    return result
