"""Mock endpoint matching and scenario activation."""
from .match_engine import MockMatchEngine, match_path_pattern, interpolate_params, match_subset
from .activation import ScenarioActivationManager, get_activation_manager

__all__ = [
    "MockMatchEngine",
    "match_path_pattern",
    "interpolate_params",
    "match_subset",
    "ScenarioActivationManager",
    "get_activation_manager",
]
