"""
End-to-end tests for wtboot.

These run the installed command in a separate interpreter against real
server processes and check exit codes, output and process cleanup.
"""
