"""Row, identity and modification models for the grid engine."""
