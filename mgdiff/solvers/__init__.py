"""Linear solvers, the power iteration engine and the eigenvalue driver."""
