from collections import Counter

from fastapi import FastAPI
from fastapi.routing import APIRoute

from loggers import get_logger

logger = get_logger(__name__)

DOCS_PATHS = frozenset({"/openapi.json", "/docs", "/docs/oauth2-redirect", "/redoc"})


def _is_docs_route(route: APIRoute) -> bool:
    return getattr(route, "path", None) in DOCS_PATHS


def log_routes_summary(application: FastAPI, include_debug_list: bool = False) -> None:
    """Log endpoint counts per method and tag; every route too when asked."""
    routes = [
        route
        for route in application.routes
        if isinstance(route, APIRoute) and not _is_docs_route(route)
    ]

    by_method = Counter(method for route in routes for method in route.methods or ())
    by_tag = Counter(tag for route in routes for tag in route.tags or ["<untagged>"])
    logger.info(
        "API endpoints summary: total=%s methods=%s tags=%s",
        len(routes),
        dict(by_method),
        dict(by_tag),
    )

    if include_debug_list:
        for route in sorted(routes, key=lambda r: (r.path, sorted(r.methods or ()))):
            methods = ",".join(sorted(route.methods or ()))
            logger.debug("Route: %s %s -> %s", methods, route.path, route.name)
