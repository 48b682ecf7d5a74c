"""Insurance verification pipeline and encrypted patient field storage."""
