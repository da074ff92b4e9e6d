from __future__ import annotations

from .detector import LanguageDetector

__all__ = ["LanguageDetector"]
