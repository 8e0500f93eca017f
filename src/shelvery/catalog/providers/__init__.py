# ABOUTME: Upstream catalog providers, one module per external data source.
# ABOUTME: Each provider subclasses ProviderBase and owns its rate limiter and credentials.
