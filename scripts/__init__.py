"""Developer scripts for the Castle Contagion rules engine."""
