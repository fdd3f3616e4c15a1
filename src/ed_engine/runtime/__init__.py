"""Process-level services: telemetry, configuration, and interrupt handling."""
