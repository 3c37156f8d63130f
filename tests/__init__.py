"""
Test suite for the location pricing service.

Run all tests: pytest
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_price_resolver.py -v
"""
