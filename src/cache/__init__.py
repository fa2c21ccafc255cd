"""Cache tiers, storage backends and persistence."""
