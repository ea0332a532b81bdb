"""Core order model, change detection and projection for the panel."""

from .logging import ensure_runtime_dirs, log_event

__all__ = ["ensure_runtime_dirs", "log_event"]
