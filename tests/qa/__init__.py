"""
QA Test Suite for indicator-qa

This test suite provides comprehensive testing for the QA system including:
- Unit tests for individual QA checks, scoring and issue lifecycle
- Integration tests for the full pipeline, the service and the CLI
- Performance tests for batch operations
- Regression tests for known issues
- Property-based testing for invariants
"""
