from .config import CrmConfig, DEFAULT_TOKEN_PATH, DEFAULT_TOKEN_TTL_SECONDS
from .token_provider import CrmTokenProvider, TOKEN_CACHE_KEY

__all__ = [
    "CrmConfig",
    "CrmTokenProvider",
    "DEFAULT_TOKEN_PATH",
    "DEFAULT_TOKEN_TTL_SECONDS",
    "TOKEN_CACHE_KEY",
]
