"""atsboard command-line front end."""
