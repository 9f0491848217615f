"""Constants for clustering API routes."""

PROVIDER_EMBEDDINGS = "embeddings"
PROVIDER_TERM_FREQUENCY = "term_frequency"
