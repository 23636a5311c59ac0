"""
Test suite for the Task Manager application.

This package contains:
- unit/: Validation, repository, service and timeout tests
- integration/: REST API tests using the Flask test client
- security/: Adversarial input and mass-assignment checks
- smoke/: Fast checks against a running deployment using requests
- performance/: Locust load-test scenarios
"""
