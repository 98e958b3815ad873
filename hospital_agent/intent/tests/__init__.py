"""
Tests for the intent classification package.

Run tests with:
    python -m pytest hospital_agent/intent/tests/ -v
"""
