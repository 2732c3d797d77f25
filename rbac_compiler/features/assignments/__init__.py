"""
Assignment feature module.

Scope rendering, single-role assignment expansion per scope tier and custom
role definitions.
"""
