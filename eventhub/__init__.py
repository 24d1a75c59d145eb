"""EventHub community events service."""
