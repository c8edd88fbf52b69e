"""Field inspection evidence capture, sync and analysis."""
