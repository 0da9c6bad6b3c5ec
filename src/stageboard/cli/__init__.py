"""Non-interactive command line commands."""
