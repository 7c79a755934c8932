"""
Shared, cross-cutting code for the API.

`core/` holds the building blocks every feature uses (settings, storage
adapter, SQL dialects, list-query building, error taxonomy, logging).
Feature-specific SQL and business rules stay in the feature package
(e.g. `materials/`, `reports/`).
"""
