"""
Performance test package.

Load scenarios for the Task Manager API, driven by Locust.  Run them
against a live server with::

    locust -f tests/performance/locustfile.py --host http://localhost:5000
"""
