# ABOUTME: Per-provider response parsers.
# ABOUTME: Pure functions mapping upstream payloads into RawCandidates and CanonicalResults.
