#!/usr/bin/env python3
"""
Change the primary domain of a Google Workspace account, then rename every
user and group to it, mirroring existing aliases onto the new domain.

Install:
  pip install .   (google-api-python-client, google-auth, google-auth-oauthlib, ...)

Auth:
  - OAuth client (Desktop app) saved as client_secret.json, or
  - Service Account JSON with Domain-Wide Delegation (DWD) + --impersonate
  - Scopes: admin.directory.user, admin.directory.customer, admin.directory.group

Example:
  ./change-primary-domain.py --old-domain example.org --new-domain example.com --dry-run
"""

import sys

from changeprimarydomain.cli import main

if __name__ == "__main__":
    sys.exit(main())
