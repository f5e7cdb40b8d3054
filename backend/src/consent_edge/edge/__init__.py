"""CloudFront request/response types and edge entrypoints."""
