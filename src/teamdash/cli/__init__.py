"""Command-line sub-commands for TeamDash."""
