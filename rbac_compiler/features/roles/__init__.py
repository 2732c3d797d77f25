"""
Role table feature module.

Built-in default role tables and the resolver that applies caller overrides
on top of them.
"""
