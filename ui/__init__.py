"""HTTP API package for the WatchMQTT dashboard."""
