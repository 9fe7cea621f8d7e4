"""CLI subcommands for the Jobcacher registry cache."""
