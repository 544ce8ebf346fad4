"""
Test Suite for the Production Lifecycle Engine

This package contains tests for:
- production_lifecycle/ - state graph, gates, requirements, next actions
- scripts/ - lifecycle report CLI
"""
