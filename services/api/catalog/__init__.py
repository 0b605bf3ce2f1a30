"""NPD catalog service: product search, duplicate detection, contributor tiers and rewards."""
