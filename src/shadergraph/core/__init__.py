"""Core subsystem: graph model, projection, configuration, logging."""
