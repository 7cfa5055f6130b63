from . import admin, auth, pings

__all__ = ["admin", "auth", "pings"]
