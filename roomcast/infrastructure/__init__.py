"""Infrastructure — storage backends, persisted store, latency, media and logging."""
