"""Core package initializer for musicdict.

Settings, contracts, ports and the error taxonomy live in submodules:
    from musicdict.core.settings import load_settings, get_logger
    from musicdict.core.errors import AIServiceError, GenerationQualityError
"""

from __future__ import annotations

__all__ = ["__doc__"]
