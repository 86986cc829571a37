"""Navigation routes the client treats as reachable without a session."""

from __future__ import annotations

from typing import Final

ROOT_ROUTE: Final[str] = "/"
AUTH_ROUTE_PREFIX: Final[str] = "/auth"
PUBLIC_ROUTES: Final[frozenset[str]] = frozenset({ROOT_ROUTE, "/terms", "/privacy"})


def normalize_path(path: str | None) -> str:
    """Strip query/fragment and trailing slashes so comparisons are stable."""

    if not path:
        return ROOT_ROUTE
    cleaned = path.split("?", 1)[0].split("#", 1)[0].strip()
    if not cleaned.startswith("/"):
        cleaned = f"/{cleaned}"
    if len(cleaned) > 1:
        cleaned = cleaned.rstrip("/") or ROOT_ROUTE
    return cleaned


def is_public_route(path: str | None) -> bool:
    """Return ``True`` for the root, the ``/auth`` subtree, terms and privacy."""

    normalized = normalize_path(path)
    if normalized in PUBLIC_ROUTES:
        return True
    return normalized == AUTH_ROUTE_PREFIX or normalized.startswith(f"{AUTH_ROUTE_PREFIX}/")


__all__ = ["AUTH_ROUTE_PREFIX", "PUBLIC_ROUTES", "ROOT_ROUTE", "is_public_route", "normalize_path"]
