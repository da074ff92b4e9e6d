"""High-level flows tying the agents to a repository."""
