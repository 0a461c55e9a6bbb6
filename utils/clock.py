from datetime import datetime

from flask import current_app


def now() -> datetime:
    """Current local wall-clock time; tests swap NOW_PROVIDER for a fixed clock."""
    provider = current_app.config.get("NOW_PROVIDER") or datetime.now
    return provider()
