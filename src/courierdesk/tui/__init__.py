"""Terminal user interface for the delivery panel."""
