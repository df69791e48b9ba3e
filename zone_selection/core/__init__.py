"""Core utilities and shared infrastructure.

- config: Engine configuration loading and validation
- constants: Named constants, error codes, defaults
- exceptions: Custom exception hierarchy
"""
