"""
Test suite for the Task Manager API.

This package contains:
- unit/: models, schemas, tokens, avatars and mail in isolation
- integration/: endpoint behaviour through the Flask test client
- security/: session, tenant-isolation and hostile-input checks
- contracts/: responses validated against contracts/openapi.yaml
- smoke/: quick checks against a running server
- performance/: Locust load scenarios
"""
