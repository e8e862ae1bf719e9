"""
Command line entry point.

Example (interactive OAuth, client_secret.json in the working directory):
  change-primary-domain --old-domain example.org --new-domain example.com

Example (service account with domain-wide delegation, no prompts):
  change-primary-domain --old-domain example.org --new-domain example.com \
      --sa-key /etc/google/sa.json --impersonate admin@example.com --yes

Preview only:
  ... add --dry-run
"""

import argparse
import os
import sys
from typing import List, Optional

from . import auth
from .config import DEFAULT_CUSTOMER, DEFAULT_MAX_RETRIES, DEFAULT_PAGE_SIZE, DEFAULT_RPS, MigrationConfig
from .directory import DirectoryClient
from .errors import ConfigError, ConfirmationError, TransportError, UserAbort
from .orchestrator import AutoConfirmation, MigrationOrchestrator, StdinConfirmation


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="change-primary-domain",
        description="Change a Workspace account's primary domain and rename users and groups to it.",
    )
    ap.add_argument("--old-domain", required=True, help="Current primary domain (e.g., example.org).")
    ap.add_argument("--new-domain", required=True, help="New primary domain (e.g., example.com).")
    ap.add_argument("--client-secret", default=os.environ.get("CPD_CLIENT_SECRET", "client_secret.json"),
                    help="OAuth client secret JSON (Desktop app).")
    ap.add_argument("--sa-key", default=os.environ.get("CPD_SA_KEY"),
                    help="Service account JSON key; use with --impersonate instead of OAuth.")
    ap.add_argument("--impersonate", default=os.environ.get("CPD_IMPERSONATE"),
                    help="Admin user to impersonate with --sa-key.")
    ap.add_argument("--customer", default=DEFAULT_CUSTOMER, help="Customer ID or 'my_customer'.")
    ap.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Listing page size (maxResults).")
    ap.add_argument("--rps", type=float, default=DEFAULT_RPS, help="Pacing for API calls (requests/sec).")
    ap.add_argument("--max-retries", type=int, default=DEFAULT_MAX_RETRIES, help="Max retries on 429/5xx.")
    ap.add_argument("--no-browser", action="store_true", help="Do not open a browser for OAuth consent.")
    ap.add_argument("--dry-run", action="store_true", help="Print the plan only; no changes are made.")
    ap.add_argument("--yes", action="store_true", help="Answer yes to every confirmation.")
    ap.add_argument("--verbose", action="store_true", help="Verbose logging.")
    return ap


def config_from_args(args: argparse.Namespace) -> MigrationConfig:
    return MigrationConfig.create(
        args.old_domain,
        args.new_domain,
        customer=args.customer,
        page_size=args.page_size,
        rps=args.rps,
        max_retries=args.max_retries,
        dry_run=args.dry_run,
        verbose=args.verbose,
    )


def build_directory_client(args: argparse.Namespace, cfg: MigrationConfig) -> DirectoryClient:
    if args.sa_key:
        if not args.impersonate:
            raise ConfigError("--sa-key requires --impersonate")
        creds = auth.get_service_account_credentials(args.sa_key, args.impersonate)
    else:
        creds = auth.get_oauth_credentials(args.client_secret, cfg.new_domain, open_browser=not args.no_browser)
    svc = auth.build_directory_service(creds)
    return DirectoryClient(svc, rps=cfg.rps, max_retries=cfg.max_retries, verbose=cfg.verbose)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        cfg = config_from_args(args)
        directory = build_directory_client(args, cfg)
        confirm = AutoConfirmation(True) if args.yes else StdinConfirmation()
        MigrationOrchestrator(directory, cfg, confirm).run()
    except UserAbort as e:
        print(str(e) or "Abort!")
        return 0
    except (ConfigError, ConfirmationError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except TransportError as e:
        print(f"ERROR: Directory API call failed: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 99

    print("\nProcess complete.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
