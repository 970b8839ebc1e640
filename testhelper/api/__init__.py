"""HTTP API for scenarios, mocks, tables, target database, and proxying."""
