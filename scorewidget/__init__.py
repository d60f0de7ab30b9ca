"""
CRM Score Widget — account score editor + CRM credential proxy

Packages:
    api/           Flask proxy routes (accounts, health, static widget page)
    integrations/  Upstream CRM REST client (Basic Auth, merge-patch)
    widget/        Headless widget: score input controller + save protocol
    core/          Shared configuration, errors, and paths
"""

__version__ = "1.0.0"
