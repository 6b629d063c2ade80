"""Version reconciliation and package installation."""
