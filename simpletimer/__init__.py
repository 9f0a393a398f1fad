"""SimpleTimer: a countdown timer that survives restarts."""
