"""shellgate - guarded shell execution for AI agents."""

__version__ = "0.1.0"
__logo__ = "🛡️"
