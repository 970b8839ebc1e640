"""Request matching against a scenario's mock endpoints."""
import re
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from testhelper.models.scenario import MockEndpoint
from testhelper.models.results import MockRequest, ResolvedMockResponse
from testhelper.services.constant_resolver import ConstantResolver, get_constant_resolver
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)

_PLACEHOLDER = re.compile(r"\{\{(\w+)\}\}")


@dataclass
class PathMatch:
    """Outcome of matching a path pattern against a concrete path."""
    is_match: bool
    params: Dict[str, str] = field(default_factory=dict)


def match_path_pattern(pattern: str, actual_path: str) -> PathMatch:
    """
    Match a mock path pattern against a request path.

    Segments must be equal, except pattern segments starting with ``:``,
    which capture exactly one path segment (``/users/:id`` matches
    ``/users/123``). Empty segments are ignored, so trailing slashes do not
    matter.
    """
    pattern_segments = [segment for segment in pattern.split("/") if segment]
    path_segments = [segment for segment in actual_path.split("/") if segment]

    if len(pattern_segments) != len(path_segments):
        return PathMatch(is_match=False)

    params: Dict[str, str] = {}
    for pattern_segment, path_segment in zip(pattern_segments, path_segments):
        if pattern_segment.startswith(":") and len(pattern_segment) > 1:
            params[pattern_segment[1:]] = path_segment
            continue
        if pattern_segment != path_segment:
            return PathMatch(is_match=False)

    return PathMatch(is_match=True, params=params)


def interpolate_params(value: Any, params: Mapping[str, str]) -> Any:
    """Replace ``{{name}}`` placeholders with captured path params (missing ones become empty)."""
    if isinstance(value, str):
        return _PLACEHOLDER.sub(lambda m: params.get(m.group(1), ""), value)
    if isinstance(value, list):
        return [interpolate_params(item, params) for item in value]
    if isinstance(value, Mapping):
        return {key: interpolate_params(item, params) for key, item in value.items()}
    return value


def match_subset(pattern: Any, actual: Any) -> bool:
    """
    Check that ``actual`` contains everything ``pattern`` specifies.

    Mappings: every pattern key must be present and match recursively.
    Lists: every pattern element must match the element at the same index.
    Scalars: equality.
    """
    if isinstance(pattern, Mapping):
        if not isinstance(actual, Mapping):
            return False
        return all(key in actual and match_subset(value, actual[key]) for key, value in pattern.items())
    if isinstance(pattern, list):
        if not isinstance(actual, list) or len(actual) < len(pattern):
            return False
        return all(match_subset(item, actual[index]) for index, item in enumerate(pattern))
    if isinstance(pattern, bool) or isinstance(actual, bool):
        return type(pattern) is type(actual) and pattern == actual
    return pattern == actual


def _normalize_headers(headers: Mapping[str, str]) -> Dict[str, str]:
    return {name.lower(): value for name, value in headers.items()}


class MockMatchEngine:
    """
    Holds one scenario's mock endpoints and resolves requests against them.

    The endpoint set is an immutable tuple swapped in one assignment by
    ``register``; ``match`` reads that reference once, so concurrent readers
    see either the previous set or the new one, never a mix.
    """

    def __init__(self, resolver: Optional[ConstantResolver] = None):
        self.resolver = resolver or get_constant_resolver()
        self._endpoints: Tuple[MockEndpoint, ...] = ()
        self._write_lock = threading.Lock()

    def register(self, endpoints: Iterable[MockEndpoint]) -> int:
        """
        Replace the registered endpoint set.

        Args:
            endpoints: Endpoints of the scenario being activated

        Returns:
            Number of enabled endpoints now registered
        """
        snapshot = tuple(endpoints)
        with self._write_lock:
            self._endpoints = snapshot
        enabled = sum(1 for endpoint in snapshot if endpoint.enabled)
        logger.info("Mock endpoints registered", total=len(snapshot), enabled=enabled)
        return enabled

    def clear(self) -> None:
        """Discard every registered endpoint."""
        with self._write_lock:
            self._endpoints = ()

    def endpoints(self) -> List[MockEndpoint]:
        """Registered endpoints, highest priority first."""
        return sorted(self._endpoints, key=lambda e: (-e.priority, e.id))

    def find_endpoint(self, request: MockRequest) -> Optional[Tuple[MockEndpoint, Dict[str, str]]]:
        """
        Select the endpoint that answers a request, without resolving its response.

        Returns:
            (endpoint, captured path params), or None when nothing matches
        """
        snapshot = self._endpoints
        method = request.method.upper()
        request_headers = _normalize_headers(request.headers or {})
        request_query = request.query or {}

        best: Optional[Tuple[Tuple[int, int, str], MockEndpoint, Dict[str, str]]] = None
        for endpoint in snapshot:
            if not endpoint.enabled or endpoint.method.value != method:
                continue

            path_match = match_path_pattern(endpoint.path, request.path)
            if not path_match.is_match:
                continue

            criteria = endpoint.request_match
            constraints = 0
            if criteria is not None:
                if criteria.query and not match_subset(criteria.query, request_query):
                    continue
                if criteria.headers and not match_subset(_normalize_headers(criteria.headers), request_headers):
                    continue
                if criteria.body is not None and not match_subset(criteria.body, request.body):
                    continue
                constraints = criteria.constraint_count()

            # Highest priority, then most constraints, then lowest id
            rank = (-endpoint.priority, -constraints, endpoint.id)
            if best is None or rank < best[0]:
                best = (rank, endpoint, path_match.params)

        if best is None:
            return None
        return best[1], best[2]

    def match(self, request: MockRequest) -> Optional[ResolvedMockResponse]:
        """
        Resolve a request to the best matching endpoint's response.

        Args:
            request: Inbound method, path, query, headers, and body

        Returns:
            Resolved response (params interpolated, constants generated), or
            None when no enabled endpoint matches
        """
        found = self.find_endpoint(request)
        if found is None:
            logger.debug("No mock matched", method=request.method, path=request.path)
            return None

        endpoint, params = found
        response = endpoint.response
        body = self.resolver.resolve(interpolate_params(response.body, params))
        headers = self.resolver.resolve_headers(response.headers or {})

        logger.debug("Mock matched", endpoint_id=endpoint.id, method=request.method, path=request.path)
        return ResolvedMockResponse(
            endpoint_id=endpoint.id,
            status=response.status,
            headers=headers,
            body=body,
            delay=response.delay,
            path_params=params,
        )
