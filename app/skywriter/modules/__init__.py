"""
Feature modules live under this package.

Each module owns its models, service functions and HTTP blueprint, while reusing
platform primitives (config, DB session, transaction scope).
"""
