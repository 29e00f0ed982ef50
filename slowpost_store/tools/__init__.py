"""
Operator tools for the Slowpost store.

Available tools:
- store_cli: Inspect documents and links from the command line
"""
