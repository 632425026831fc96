"""Game-specific integrations.

Each module defines one ``BaseIntegration`` subclass. Modules placed
here are picked up by ``IntegrationRegistry.discover()``.
"""
