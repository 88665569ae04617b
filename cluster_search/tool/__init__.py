"""Command line tool for cluster-search."""
