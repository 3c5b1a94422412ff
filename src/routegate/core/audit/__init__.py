"""Activity and login auditing."""
