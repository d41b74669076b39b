"""Discord verify-gate bot.

Gates a restricted channel behind a verify button / ``/verify`` command that
consults an external verification endpoint before granting a role.
"""

__all__ = [
    "actions",
    "channels",
    "components",
    "config",
    "greeter",
    "interactions",
    "runtime",
    "scheduler",
    "security",
    "verification_api",
    "web",
    "webhooks",
]
