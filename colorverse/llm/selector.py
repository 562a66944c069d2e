"""Model ordering within a provider."""

from typing import Dict, List, Mapping, Sequence

from .providers.base import ProviderDescriptor
from .status import ProviderStatusTracker

MAX_MODELS_PER_PROVIDER = 5


def rank_models(
    models: Sequence[str],
    success_counts: Mapping[str, int],
    limit: int = MAX_MODELS_PER_PROVIDER,
) -> List[str]:
    """Order models so that previously successful ones are tried first.

    Models with a recorded success come first, most successes first, with
    ties kept in registry order. Remaining registry models follow in registry
    order. The result is truncated to ``limit`` entries.
    """
    position: Dict[str, int] = {model: i for i, model in enumerate(models)}

    successful = [model for model, count in success_counts.items() if count > 0]
    # sorted() is stable, so models outside the registry keep insertion order
    successful = sorted(
        successful,
        key=lambda model: (-success_counts[model], position.get(model, len(models))),
    )

    remaining = [model for model in models if model not in successful]
    return (successful + remaining)[:limit]


class ModelSelector:
    """Picks candidate models for a provider from its success history."""

    def __init__(
        self,
        tracker: ProviderStatusTracker,
        limit: int = MAX_MODELS_PER_PROVIDER,
    ):
        self._tracker = tracker
        self.limit = limit

    def select_models(self, provider: ProviderDescriptor) -> List[str]:
        status = self._tracker.get(provider.id)
        return rank_models(provider.models, status.model_success_counts, self.limit)
