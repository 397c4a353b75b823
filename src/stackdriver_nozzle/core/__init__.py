"""Core domain: envelope and telemetry models, ports and payload encoding."""
