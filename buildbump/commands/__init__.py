"""Click commands for the buildbump CLI."""
