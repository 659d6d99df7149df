"""Core domain: models, config, engine, persistence, use cases."""
