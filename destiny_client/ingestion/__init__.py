"""
Ingestion layer — Bungie Platform API access.

Submodules:
  transport      — HTTP collaborator (httpx) and JSON decoding
  envelope       — ``ErrorCode`` / ``Response`` envelope validation
  parsers        — per-endpoint extraction into domain models
  bungie_client  — ``BungieClient``: the public async query surface

Credential placement (.env, gitignored):
  BUNGIE_API_KEY             — Bungie application API key
"""
