"""Encoders that turn domain objects into generic payloads."""
