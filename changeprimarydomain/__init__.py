"""
Change the primary domain of a Google Workspace account.

Updates the customer's primary domain, renames every user and group to the
new domain and mirrors existing aliases onto it so old addresses keep
resolving. Safe to re-run: every pass plans from the live directory state.
"""

__version__ = "0.1.0"
