"""
Service principal feature module.
"""
