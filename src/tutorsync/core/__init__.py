"""Core models: errors, configuration, job status, logging."""
