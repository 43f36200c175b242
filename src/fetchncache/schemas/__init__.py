"""JSON schemas for fetchncache configuration files.

- config.schema.json: top-level config with the list of fetch targets
"""
