"""Usage telemetry services."""
