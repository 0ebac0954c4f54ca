"""Rules and rulebooks management service."""
