"""
Domain services.

Each module owns one area of the data model: its field definitions, the
``CrudResource`` exposing it over HTTP, and the rules that run on save
(tenant checks, event relations, cost totals, human effects tables).
"""
