"""Terminal board UI for taskboard."""
