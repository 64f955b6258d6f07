"""Interface definition for grouping fallback strategies.
"""

from typing import Protocol, Any, Dict, runtime_checkable

from suggestion_engine.features.suggestion_models import FallbackContext

@runtime_checkable
class GroupFallbackStrategy(Protocol):
    """A protocol for strategies that regroup candidates when deterministic detection is weak.

    Implementations (rule-based, model-backed, test stubs) can be swapped
    without touching the orchestrator. The engine treats a call as atomic:
    it either returns a mapping with a "groups" list or the deterministic
    groups are kept. Timeouts and retries are the strategy's own concern.
    """

    def propose_groups(self, context: FallbackContext) -> Dict[str, Any]:
        """Proposes replacement groups.

        Args:
            context: The re-scored candidates and the deterministic groups
                in their JSON output shape.

        Returns:
            A mapping of the form {"groups": [...]} using the output group shape.

        Raises:
            Exception: Any failure; the engine keeps the deterministic groups.
        """
        ...
