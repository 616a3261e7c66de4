"""Transport adapters between wire messages and the binding layer."""
