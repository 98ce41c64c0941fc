"""Runtime support for supervised installer actions."""
