"""
=============================================================================
URL ROUTER
=============================================================================

Maps (method, path) to handler functions.

    GET    /api/users        -> list_users
    GET    /api/users/:id    -> get_user       /api/users/42 -> {"id": "42"}
    POST   /api/users        -> create_user
    ...
    (anything else)          -> fallback

Patterns are compiled to anchored regexes once, at registration:

    /api/users/:id   ->   ^/api/users/(?P<id>[^/]+)$

Matching is first-registered, first-matched. A request that matches no
route goes to the fallback handler, so the application decides what an
unknown route looks like (here: a 404 envelope listing the endpoints).
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import re

from .request import HTTPRequest
from .response import HTTPResponse, error_response
from .status_codes import HTTPStatus


# Every route handler takes a request and returns a response
Handler = Callable[[HTTPRequest], HTTPResponse]

_PARAM = re.compile(r":(\w+)")


@dataclass
class Route:
    """A registered route. `meta` holds keyword arguments given at registration."""

    path: str
    method: Optional[str]            # None = any method
    handler: Handler
    meta: Dict[str, Any] = field(default_factory=dict)

    _pattern: Optional[re.Pattern] = field(default=None, repr=False)
    _param_names: List[str] = field(default_factory=list, repr=False)

    @property
    def signature(self) -> str:
        """Label such as 'GET /api/users/:id', used in endpoint catalogs."""
        return f"{self.method or 'ANY'} {self.path}"


@dataclass
class RouteMatch:
    route: Route
    params: Dict[str, str]


class Router:
    """
    HTTP request router with :param path segments.

    Routes are registered with decorators:

        router = Router()

        @router.get("/api/users/:id", description="Get user by ID")
        def get_user(request):
            user_id = request.path_params["id"]
            ...

        @router.fallback
        def unknown_route(request):
            ...
    """

    def __init__(self):
        self._routes: List[Route] = []
        self._fallback: Optional[Handler] = None

    # =========================================================================
    # ROUTE REGISTRATION
    # =========================================================================

    def add_route(
        self,
        path: str,
        handler: Handler,
        method: Optional[str] = None,
        **meta: Any
    ) -> Route:
        """
        Register a handler for a path pattern.

        Args:
            path: URL pattern, e.g. /api/users/:id
            handler: Function taking a request and returning a response
            method: HTTP method, or None for any method
            **meta: Free-form metadata stored on the Route
        """
        pattern, param_names = self._compile_pattern(path)
        route = Route(
            path=path,
            method=method.upper() if method else None,
            handler=handler,
            meta=meta,
            _pattern=pattern,
            _param_names=param_names,
        )
        self._routes.append(route)
        return route

    @staticmethod
    def _compile_pattern(path: str) -> Tuple[re.Pattern, List[str]]:
        """Static text is escaped; each :name becomes a group matching one segment."""
        normalized = "/" + path.strip("/")
        param_names = _PARAM.findall(normalized)
        regex = _PARAM.sub(
            lambda m: f"(?P<{m.group(1)}>[^/]+)",
            re.escape(normalized),
        )
        return re.compile(f"^{regex}$"), param_names

    def route(self, path: str, method: Optional[str] = None, **meta: Any) -> Callable[[Handler], Handler]:
        """Decorator form of add_route(); returns the handler unchanged."""
        def decorator(handler: Handler) -> Handler:
            self.add_route(path, handler, method, **meta)
            return handler
        return decorator

    def get(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "GET", **meta)

    def post(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "POST", **meta)

    def put(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "PUT", **meta)

    def delete(self, path: str, **meta: Any) -> Callable[[Handler], Handler]:
        return self.route(path, "DELETE", **meta)

    def fallback(self, handler: Handler) -> Handler:
        """Register the handler for requests that match no route."""
        self._fallback = handler
        return handler

    # =========================================================================
    # MATCHING AND DISPATCH
    # =========================================================================

    def match(self, method: str, path: str) -> Optional[RouteMatch]:
        """
        Find the first route matching method and path.

        A trailing slash is ignored, so /api/users/ matches /api/users.
        """
        path = "/" + path.strip("/") if path != "/" else "/"

        for route in self._routes:
            if route.method and route.method != method.upper():
                continue
            match = route._pattern.match(path)
            if match:
                return RouteMatch(route=route, params=match.groupdict())

        return None

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        """
        Dispatch a request.

        Path parameters are stored on request.path_params before the
        handler runs. Unmatched requests go to the fallback handler, or get
        a bare 404 envelope when none is registered.
        """
        match = self.match(request.method, request.path)

        if match:
            request.path_params = match.params
            return match.route.handler(request)

        if self._fallback is not None:
            return self._fallback(request)

        return error_response(
            HTTPStatus.NOT_FOUND,
            HTTPStatus.NOT_FOUND.phrase,
            f"Route {request.method} {request.target} not found",
        )

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def routes(self) -> List[Route]:
        return list(self._routes)

    def print_routes(self) -> None:
        """Print the route table (shown in the startup banner)."""
        print("\nRegistered Routes:")
        print("-" * 60)
        for route in self._routes:
            print(f"  {route.method or 'ANY':8} {route.path}")
        print("-" * 60)
