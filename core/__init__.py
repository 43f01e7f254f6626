"""
Core module for shared domain infrastructure.

This module contains:
- Domain exceptions and value objects
- Observability (tracing, metrics, middleware)
- Health check views
"""
