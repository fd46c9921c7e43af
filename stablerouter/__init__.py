"""StableSwap curve math, a multi-hop swap router and a stable liquidity pool."""

__version__ = "0.1.0"
__all__ = ["curve", "errors", "chain", "operations", "router", "pool"]