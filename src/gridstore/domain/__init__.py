"""Domain layer: records, identifiers, errors and the chunk codec."""
