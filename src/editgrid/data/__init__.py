"""Engine state: change overlay, configuration and the grid store."""
