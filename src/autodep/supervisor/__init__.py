"""Child process supervision and watch-mode restarts."""
