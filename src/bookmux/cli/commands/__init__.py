# ABOUTME: Subcommands for the bookmux CLI.
# ABOUTME: Each module defines one Click command or command group.
