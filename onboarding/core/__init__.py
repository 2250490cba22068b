"""Core infrastructure: exceptions, logging, security and middleware."""
