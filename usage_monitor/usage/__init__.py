"""Usage windows, derived metrics and the backend that produces snapshots."""
