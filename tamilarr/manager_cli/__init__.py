"""Typer-based command line client for the Tamilarr Manager API."""
