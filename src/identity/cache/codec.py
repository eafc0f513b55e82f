"""Blob codecs for the persisted token cache.

Current format::

    {"version": 1, "tokens": {"<key>": {...token...}}}

Legacy format is the flat ``{"<key>": {...token...}}`` mapping written by the
older file cache (``tokens.json``). It is only ever read.
"""

import json
from typing import Dict

CURRENT_VERSION = 1
ENCODING = "utf-8"

Tokens = Dict[str, dict]


def _load_json_object(data: bytes, what: str) -> dict:
    if not isinstance(data, (bytes, bytearray)):
        raise ValueError(f"{what} cache data must be bytes, got {type(data).__name__}")
    decoded = json.loads(data.decode(ENCODING))
    if not isinstance(decoded, dict):
        raise ValueError(f"Could not json dict from {what} cache data")
    return decoded


def _check_tokens(tokens: dict, what: str) -> Tokens:
    for key, token in tokens.items():
        if not isinstance(token, dict):
            raise ValueError(f"Bad {what} cache entry for key {key!r}: expected dict, got {type(token).__name__}")
    return dict(tokens)


class CurrentFormatCodec:
    @staticmethod
    def encode(tokens: Tokens) -> bytes:
        return json.dumps({"version": CURRENT_VERSION, "tokens": tokens}, sort_keys=True).encode(ENCODING)

    @staticmethod
    def decode(data: bytes) -> Tokens:
        body = _load_json_object(data, "current")
        version = body.get("version")
        if version != CURRENT_VERSION:
            raise ValueError(f"Unsupported cache version: {version!r}")
        tokens = body.get("tokens")
        if not isinstance(tokens, dict):
            raise ValueError("Missing key tokens in cache data")
        return _check_tokens(tokens, "current")


class LegacyFormatCodec:
    @staticmethod
    def decode(data: bytes) -> Tokens:
        return _check_tokens(_load_json_object(data, "legacy"), "legacy")
