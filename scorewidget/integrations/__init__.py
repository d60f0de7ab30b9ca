"""External service integrations.

Modules:
    crm    — Upstream CRM account-service REST client (Basic Auth, merge-patch)
"""
