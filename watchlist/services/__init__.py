"""Service layer for the watchlist API and its client session."""
