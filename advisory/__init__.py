#Marks advisory as a package.
#Re-exports the public API (generate_advisory, providers) so callers import from
#advisory without knowing internal file names.
#No scheduling logic.

from .bridge import (
    AdvisoryContext,
    AdvisoryProvider,
    ChatAdvisoryProvider,
    advise,
    build_context,
    generate_advisory,
    render_messages,
)
from .client import ChatCompletionsProvider, ProviderError

__all__ = [
    "AdvisoryContext",
    "AdvisoryProvider",
    "ChatAdvisoryProvider",
    "ChatCompletionsProvider",
    "ProviderError",
    "advise",
    "build_context",
    "generate_advisory",
    "render_messages",
]
