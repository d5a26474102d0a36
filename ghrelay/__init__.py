"""ghrelay: normalise source-hosting webhooks into canonical deployment events."""

from __future__ import annotations
