"""Scenario activation: which scenario's mocks answer inbound requests."""
import threading
from typing import Any, Dict, Iterable, List, Optional

from testhelper.models.scenario import MockEndpoint
from testhelper.models.results import MockRequest, ResolvedMockResponse
from testhelper.mock_services.match_engine import MockMatchEngine
from testhelper.services.constant_resolver import ConstantResolver, get_constant_resolver
from testhelper.config.logging_config import get_logger

logger = get_logger(__name__)

# Scenario id under which hand-managed mock endpoints are registered
MANUAL_SCENARIO_ID = "manual"


class ScenarioActivationManager:
    """
    Owns one MockMatchEngine per activated scenario.

    Activating a scenario replaces that scenario's mock set (activation is
    exclusive, not additive) and makes it the default target for matching.
    Separate manager instances share nothing, so independent test runs can
    activate scenarios side by side.
    """

    def __init__(self, resolver: Optional[ConstantResolver] = None):
        self._resolver = resolver or get_constant_resolver()
        self._engines: Dict[str, MockMatchEngine] = {}
        self._active_scenario_id: Optional[str] = None
        self._lock = threading.Lock()
        logger.info("Scenario activation manager initialized")

    @property
    def active_scenario_id(self) -> Optional[str]:
        """Id of the most recently activated scenario."""
        return self._active_scenario_id

    def engine_for(self, scenario_id: str) -> Optional[MockMatchEngine]:
        """Get the match engine of an activated scenario."""
        return self._engines.get(scenario_id)

    def activate(self, scenario_id: str, endpoints: Iterable[MockEndpoint]) -> int:
        """
        Register a scenario's mocks and make it the active scenario.

        Args:
            scenario_id: Scenario being activated
            endpoints: Its mock endpoints (replacing any earlier set)

        Returns:
            Number of enabled endpoints registered
        """
        with self._lock:
            engine = self._engines.get(scenario_id)
            if engine is None:
                engine = MockMatchEngine(self._resolver)
                self._engines[scenario_id] = engine
            enabled = engine.register(endpoints)
            self._active_scenario_id = scenario_id

        logger.info("Scenario activated", scenario_id=scenario_id, mocks_enabled=enabled)
        return enabled

    def deactivate(self, scenario_id: str) -> bool:
        """
        Discard a scenario's mocks.

        Returns:
            True if the scenario was active, False otherwise
        """
        with self._lock:
            engine = self._engines.pop(scenario_id, None)
            if engine is None:
                return False
            engine.clear()
            if self._active_scenario_id == scenario_id:
                self._active_scenario_id = None

        logger.info("Scenario deactivated", scenario_id=scenario_id)
        return True

    def match(self, request: MockRequest, scenario_id: Optional[str] = None) -> Optional[ResolvedMockResponse]:
        """
        Match a request against a scenario's mocks.

        Args:
            request: Inbound request
            scenario_id: Scenario to match against (defaults to the active one)

        Returns:
            Resolved response, or None when nothing matches or no scenario is active
        """
        target = scenario_id or self._active_scenario_id
        if target is None:
            return None
        engine = self._engines.get(target)
        if engine is None:
            return None
        return engine.match(request)

    def list_endpoints(self, scenario_id: Optional[str] = None) -> List[MockEndpoint]:
        """Endpoints registered for a scenario (defaults to the active one)."""
        target = scenario_id or self._active_scenario_id
        engine = self._engines.get(target) if target else None
        return engine.endpoints() if engine else []

    def status(self) -> Dict[str, Any]:
        """Summary of activated scenarios."""
        with self._lock:
            engines = dict(self._engines)
            active = self._active_scenario_id
        return {
            "active_scenario_id": active,
            "scenarios": [
                {
                    "scenario_id": scenario_id,
                    "endpoints": len(engine.endpoints()),
                    "is_active": scenario_id == active,
                }
                for scenario_id, engine in engines.items()
            ],
        }

    # Hand-managed mocks, kept as their own mock set under MANUAL_SCENARIO_ID

    def manual_endpoints(self) -> List[MockEndpoint]:
        """Endpoints of the hand-managed mock set."""
        return self.list_endpoints(MANUAL_SCENARIO_ID)

    def get_endpoint(self, endpoint_id: str) -> Optional[MockEndpoint]:
        """A hand-managed endpoint by id."""
        for endpoint in self.manual_endpoints():
            if endpoint.id == endpoint_id:
                return endpoint
        return None

    def create_endpoint(self, endpoint: MockEndpoint) -> MockEndpoint:
        """Add an endpoint to the hand-managed set (replacing one with the same id)."""
        with self._lock:
            current = [e for e in self._manual_locked() if e.id != endpoint.id]
            self._replace_manual_locked(current + [endpoint])
        logger.info("Mock endpoint created", endpoint_id=endpoint.id)
        return endpoint

    def update_endpoint(self, endpoint: MockEndpoint) -> Optional[MockEndpoint]:
        """
        Replace a hand-managed endpoint.

        Returns:
            The stored endpoint, or None if no endpoint has its id
        """
        with self._lock:
            current = self._manual_locked()
            if not any(e.id == endpoint.id for e in current):
                return None
            self._replace_manual_locked([endpoint if e.id == endpoint.id else e for e in current])
        logger.info("Mock endpoint updated", endpoint_id=endpoint.id)
        return endpoint

    def delete_endpoint(self, endpoint_id: str) -> bool:
        """
        Remove a hand-managed endpoint.

        Returns:
            True if it existed
        """
        with self._lock:
            current = self._manual_locked()
            remaining = [e for e in current if e.id != endpoint_id]
            if len(remaining) == len(current):
                return False
            self._replace_manual_locked(remaining)
        logger.info("Mock endpoint deleted", endpoint_id=endpoint_id)
        return True

    def delete_all_endpoints(self) -> int:
        """Empty the hand-managed set; returns how many endpoints were removed."""
        with self._lock:
            removed = len(self._manual_locked())
            self._replace_manual_locked([])
        logger.info("Mock endpoints cleared", removed=removed)
        return removed

    def import_endpoints(self, endpoints: Iterable[MockEndpoint]) -> int:
        """Replace the hand-managed set wholesale; returns the number stored."""
        endpoints = list(endpoints)
        with self._lock:
            self._replace_manual_locked(endpoints)
        logger.info("Mock endpoints imported", count=len(endpoints))
        return len(endpoints)

    def _manual_locked(self) -> List[MockEndpoint]:
        engine = self._engines.get(MANUAL_SCENARIO_ID)
        return engine.endpoints() if engine else []

    def _replace_manual_locked(self, endpoints: List[MockEndpoint]) -> None:
        # Caller holds self._lock; the engine swaps its snapshot in one step
        engine = self._engines.get(MANUAL_SCENARIO_ID)
        if engine is None:
            engine = MockMatchEngine(self._resolver)
            self._engines[MANUAL_SCENARIO_ID] = engine
        engine.register(endpoints)
        self._active_scenario_id = MANUAL_SCENARIO_ID


# Application-scoped instance
_activation_manager: Optional[ScenarioActivationManager] = None


def get_activation_manager() -> ScenarioActivationManager:
    """Get or create the application's activation manager."""
    global _activation_manager
    if _activation_manager is None:
        _activation_manager = ScenarioActivationManager()
    return _activation_manager
