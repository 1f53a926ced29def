"""HTTP API for decoding EDIDs."""
