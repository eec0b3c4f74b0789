"""Core domain: models, ports, encodings and the subscription state machine."""
