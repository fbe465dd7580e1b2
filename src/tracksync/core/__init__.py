"""Core services for tracksync: local repository state and the remote bridge."""
