"""
Root pytest configuration.

Its presence makes pytest put the project root on sys.path, so the tests
can import the `main` CLI module without an installed package.
"""
