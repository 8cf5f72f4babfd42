"""Package-level tests: problems and the command line driver."""
