"""Pure staking analytics."""
