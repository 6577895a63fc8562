"""Circle integration: notification verification, normalization and execution."""
