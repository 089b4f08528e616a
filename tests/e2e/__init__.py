"""
End-to-end tests for netcatd.

These start the real daemon in a separate process and talk to it over the
loopback interface.
"""
