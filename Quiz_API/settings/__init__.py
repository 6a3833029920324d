"""
Settings package for the quiz API.

- base.py: shared settings read from the environment
- dev.py: local development (DEBUG on)
- production.py: deployed settings
- test.py: test runs (in-memory database, no seeding)
"""
